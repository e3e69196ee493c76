"""Pipeline-level models for the link tagging workflow.

TagRequest → TagResult

TrackedLink (in document.py) represents a link found IN the document.
These models represent the submission and the outcome wrapping around it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .document import LinkOutcome, TrackedLink


class TagRequest(BaseModel, frozen=True):
    """Input to the tagging pipeline.

    A PDF on disk plus the tag to stamp onto its tracking links.
    Created from CLI input.
    """
    document_path: str
    tag: str
    base_url: str = ""           # empty = LINK_TAGGER_BASE_URL or the built-in default
    output_filename: str = ""    # empty = "tagged_<input name>"
    output_dir: str = ""         # empty = next to the input
    verify: bool = True          # re-read the output and check every tracking link


class TagResult(BaseModel, frozen=True):
    """Final output of the tagging pipeline."""
    success: bool = False
    input_path: str = ""
    output_path: str = ""
    base_url: str = ""
    tag: str = ""

    total: int = 0               # tracking links found
    updated: int = 0             # tracking links rewritten
    links: list[TrackedLink] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    error: str = ""
    processing_time_seconds: float = 0.0

    @property
    def malformed(self) -> int:
        return sum(1 for link in self.links if link.outcome == LinkOutcome.MALFORMED)

    @property
    def summary(self) -> str:
        return f"Updated {self.updated} links out of {self.total} found."
