#!/usr/bin/env python3
"""Print the SkyDNS records kube2sky would write for a service list."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from kube2sky.kube import service_from_dict  # noqa: E402
from kube2sky.projector import SKYDNS_PREFIX, project, skydns_path  # noqa: E402


LOG = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "services",
        type=Path,
        help="Path to a ServiceList JSON document (kubectl get svc -A -o json)",
    )
    parser.add_argument(
        "--domain",
        default="kubernetes.local",
        help="Domain under which names are created",
    )
    parser.add_argument(
        "--prefix",
        default=SKYDNS_PREFIX,
        help="etcd directory holding SkyDNS records",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    with args.services.open() as fh:
        payload = json.load(fh)

    rendered = 0
    for item in payload.get("items", []):
        service = service_from_dict(item)
        projection = project(service, args.domain)
        if projection is None:
            LOG.warning("Skipping headless service %s/%s", service.namespace, service.name)
            continue
        name, record = projection
        print(f"{skydns_path(name, args.prefix)} {record.to_json()}")
        rendered += 1

    LOG.info("Rendered %d records", rendered)
    return 0


if __name__ == "__main__":
    sys.exit(main())
