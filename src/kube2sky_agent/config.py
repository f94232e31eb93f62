"""YAML configuration loader for the kube2sky agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from kube2sky.projector import SKYDNS_PREFIX

DEFAULT_DOMAIN = "kubernetes.local"
DEFAULT_ETCD_SERVER = "http://127.0.0.1:4001"


@dataclass
class EtcdConfig:
    server: str = DEFAULT_ETCD_SERVER
    prefix: str = SKYDNS_PREFIX
    mutation_timeout: float = 10.0
    connect_retries: int = 12
    connect_interval: float = 5.0


@dataclass
class KubernetesConfig:
    host: Optional[str] = None
    api_version: str = "v1"
    resync_period: int = 0


@dataclass
class AgentConfig:
    domain: str = DEFAULT_DOMAIN
    verbose: bool = False
    etcd: EtcdConfig = field(default_factory=EtcdConfig)
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)


def default_config() -> AgentConfig:
    return AgentConfig()


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def _parse_etcd(section: Mapping[str, Any]) -> EtcdConfig:
    timeout = float(section.get("mutation_timeout", 10.0))
    if timeout <= 0:
        raise ValueError("etcd 'mutation_timeout' must be positive")
    return EtcdConfig(
        server=str(section.get("server", DEFAULT_ETCD_SERVER)),
        prefix=str(section.get("prefix", SKYDNS_PREFIX)),
        mutation_timeout=timeout,
        connect_retries=int(section.get("connect_retries", 12)),
        connect_interval=float(section.get("connect_interval", 5.0)),
    )


def _parse_kubernetes(section: Mapping[str, Any]) -> KubernetesConfig:
    host = section.get("host")
    return KubernetesConfig(
        host=str(host) if host else None,
        api_version=str(section.get("api_version", "v1")),
        resync_period=int(section.get("resync_period", 0)),
    )


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if data is None:
        return default_config()
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    domain = str(data.get("domain", DEFAULT_DOMAIN)).strip(".")
    if not domain:
        raise ValueError("'domain' must not be empty")

    return AgentConfig(
        domain=domain,
        verbose=bool(data.get("verbose", False)),
        etcd=_parse_etcd(_section(data, "etcd")),
        kubernetes=_parse_kubernetes(_section(data, "kubernetes")),
    )
