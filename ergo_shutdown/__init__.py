"""Shut down a local Ergo node through its REST API."""

from .client import ConnectionTarget, NodeClient
from .credentials import KeyStore
from .shutdown import ShutdownOrchestrator, ShutdownOutcome

__version__ = "1.0.0"
__all__ = ["ConnectionTarget", "KeyStore", "NodeClient", "ShutdownOrchestrator", "ShutdownOutcome"]
