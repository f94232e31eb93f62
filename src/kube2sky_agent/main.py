"""Entry point for the kube2sky bridge."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from kube2sky.etcd import EtcdRecordStore, wait_for_etcd
from kube2sky.kube import ServicesClient, master_from_environment
from kube2sky.mutator import Mutator, fatal
from kube2sky.store import StoreError

from .config import AgentConfig, default_config, load_config
from .reconciler import ServiceReconciler
from .watchers import ServiceWatchSession

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _load(args: argparse.Namespace) -> AgentConfig:
    if args.config.exists():
        config = load_config(args.config)
    else:
        config = default_config()
    if args.domain:
        config.domain = args.domain.strip(".")
    if args.etcd_server:
        config.etcd.server = args.etcd_server
    if args.verbose:
        config.verbose = True
    return config


def build_reconciler(config: AgentConfig) -> ServiceReconciler:
    try:
        wait_for_etcd(
            config.etcd.server,
            retries=config.etcd.connect_retries,
            interval=config.etcd.connect_interval,
        )
    except StoreError as exc:
        fatal("Failed to create etcd client: %s", exc)
    store = EtcdRecordStore(config.etcd.server, prefix=config.etcd.prefix)

    try:
        host = config.kubernetes.host or master_from_environment(os.environ)
    except ValueError as exc:
        fatal("Failed to create a kubernetes client: %s", exc)
    client = ServicesClient(host, api_version=config.kubernetes.api_version)
    LOG.info("Using kubernetes API %s at %s", config.kubernetes.api_version, host)

    def new_session() -> ServiceWatchSession:
        return ServiceWatchSession(
            client,
            timeout_seconds=config.kubernetes.resync_period or None,
        )

    return ServiceReconciler(
        store,
        config.domain,
        Mutator(config.etcd.mutation_timeout),
        new_session,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Bridge Kubernetes services into SkyDNS")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/kube2sky/kube2sky.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--domain",
        help="Domain under which to create names (overrides the config file)",
    )
    parser.add_argument(
        "--etcd-server",
        help="URL to the etcd server (overrides the config file)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log extra information",
    )

    args = parser.parse_args(argv)
    config = _load(args)
    _setup_logging(config.verbose)

    reconciler = build_reconciler(config)
    LOG.info("kube2sky serving domain %s", config.domain)

    # A session ends on any watch anomaly; the next one relists everything.
    reconciler.run()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
