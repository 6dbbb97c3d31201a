"""File- and log-backed adapters for single-host deployments."""

from .json_identity_store import JsonFileIdentityStore
from .log_progress import LogProgressAdapter

__all__ = ["JsonFileIdentityStore", "LogProgressAdapter"]
