"""Public interface for the network file adapter."""

from __future__ import annotations

from .schema import NetworkFilePayload
from .store import (
    NetworkFileError,
    NetworkFileFormatError,
    NetworkFileNotFoundError,
    load_network_file,
    save_network_file,
)

__all__ = [
    "NetworkFileError",
    "NetworkFileFormatError",
    "NetworkFileNotFoundError",
    "NetworkFilePayload",
    "load_network_file",
    "save_network_file",
]
