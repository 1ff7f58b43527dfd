"""Protocol interfaces for the collaborators the engine consumes."""

from buildrelay.protocols.ci_client import CIClient, Notifier

__all__ = [
    "CIClient",
    "Notifier",
]
