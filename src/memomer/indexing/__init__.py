"""Index maintenance for the memo index."""

from .maintenance import IndexMaintainer, MaintenanceResult, content_sha256

__all__ = [
    "IndexMaintainer",
    "MaintenanceResult",
    "content_sha256",
]
