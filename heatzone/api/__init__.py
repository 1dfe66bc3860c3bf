"""Clients for external scene archives."""

from heatzone.api.archive import ArchiveClient, InMemoryArchive, StacArchiveClient

__all__ = ["ArchiveClient", "InMemoryArchive", "StacArchiveClient"]
