"""kube2sky agent runtime helpers."""

from .config import AgentConfig, load_config  # noqa: F401
from .reconciler import ServiceReconciler  # noqa: F401

__all__ = [
    "AgentConfig",
    "ServiceReconciler",
    "load_config",
]
