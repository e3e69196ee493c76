"""Document data models for the link tagging pipeline.

All models use Pydantic v2 with frozen=True for immutability.
These describe what was found IN the PDF: the tracking links and what
happened to each of them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class LinkOutcome(str, Enum):
    """What the rewriter did with a single annotation."""
    NOT_APPLICABLE = "not_applicable"  # not a Link/URI, or outside the tracking domain
    UNCHANGED = "unchanged"  # counted, tag already correct
    MALFORMED = "malformed"  # counted, URI could not be parsed, left untouched
    UPDATED = "updated"  # counted, URI rewritten

    @property
    def counted(self) -> bool:
        return self is not LinkOutcome.NOT_APPLICABLE


class TrackedLink(BaseModel, frozen=True):
    """A hyperlink pointing at the tracking domain."""
    page_number: int  # 1-based
    annotation_index: int  # position in the page's /Annots array
    original_uri: str
    new_uri: str = ""  # empty unless outcome is UPDATED
    outcome: LinkOutcome
    object_id: str = ""  # "12 0 R" when the annotation is an indirect object
