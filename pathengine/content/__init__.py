# Content resolution
from .local_store import LocalContentStore
from .records import ContentRecord, NodeRecord, PathSummary
from .resolver import ContentResolver, check_visibility
from .validator import ReferenceValidator

__all__ = [
    "ContentRecord",
    "ContentResolver",
    "LocalContentStore",
    "NodeRecord",
    "PathSummary",
    "ReferenceValidator",
    "check_visibility",
]
