from .document import LinkOutcome, TrackedLink
from .pipeline import TagRequest, TagResult

__all__ = [
    "LinkOutcome",
    "TrackedLink",
    "TagRequest",
    "TagResult",
]
