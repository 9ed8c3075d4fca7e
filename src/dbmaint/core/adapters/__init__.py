"""Store gateway adapters."""

from .postgresql import CleanupTarget, PostgreSQLGateway
from .protocol import CompactResult, ReindexResult, StoreGateway

__all__ = [
    "StoreGateway",
    "CompactResult",
    "ReindexResult",
    "CleanupTarget",
    "PostgreSQLGateway",
]
