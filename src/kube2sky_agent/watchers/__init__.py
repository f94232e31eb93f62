"""Watcher implementations used by the kube2sky agent."""

from .services import ServiceWatchSession  # noqa: F401

__all__ = ["ServiceWatchSession"]
