"""Re-read a tagged PDF with PyMuPDF and confirm the tag landed.

Independent check of the pikepdf write path: opens the output with a
different PDF engine, collects every URI link, and re-applies the tag
rewrite to each tracking link. A link the rewrite would still change
did not get the tag.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import fitz  # PyMuPDF

from src.tools.link_rewriter import TAG_PARAM, MalformedUrlError, set_query_param

logger = logging.getLogger(__name__)


@dataclass
class VerifyResult:
    """Result of checking a tagged PDF."""
    success: bool
    checked: int = 0
    mismatches: list[str] = field(default_factory=list)
    error: str = ""


def verify_tagged_links(pdf_bytes: bytes, tag: str, base_url: str) -> VerifyResult:
    """Check that every parseable tracking link in ``pdf_bytes`` carries ``tag``.

    Malformed tracking URIs are not checked; the tagger leaves them as-is.
    """
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        return VerifyResult(success=False, error=f"Could not reopen output: {e}")

    checked = 0
    mismatches: list[str] = []
    try:
        for page_idx in range(len(doc)):
            for link in doc[page_idx].get_links():
                if link.get("kind") != fitz.LINK_URI:
                    continue
                uri = link.get("uri") or ""
                if not uri.startswith(base_url):
                    continue
                try:
                    expected = set_query_param(uri, TAG_PARAM, tag)
                except MalformedUrlError:
                    continue
                checked += 1
                if expected != uri:
                    mismatches.append(f"Page {page_idx + 1}: link not tagged: {uri}")
    finally:
        doc.close()

    if mismatches:
        logger.warning("Verification found %d untagged link(s)", len(mismatches))
    else:
        logger.info("Verified %d tracking link(s)", checked)
    return VerifyResult(success=not mismatches, checked=checked, mismatches=mismatches)
