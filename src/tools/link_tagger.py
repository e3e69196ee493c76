"""Stamp a tag onto every tracking link in a PDF.

Glue between the annotation walker and the link rewriter: feeds every
annotation through the rewriter and counts the outcomes.

    total   - URI links whose decoded URI starts with the base URL
    updated - of those, how many were actually rewritten
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

import pikepdf

from src.models.document import LinkOutcome, TrackedLink
from src.tools.annotation_walker import DocumentGraph, iter_annotations
from src.tools.link_rewriter import OtherAnnotation, classify, commit, plan_rewrite
from src.tools.pdf_graph import PdfGraph

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://link.akashshanmugaraj.com/link/"


@dataclass
class TagLinksResult:
    """Counts and per-link detail for one tagging run."""
    total: int = 0
    updated: int = 0
    links: list[TrackedLink] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def resolve_base_url(override: str = "") -> str:
    """Explicit value, else LINK_TAGGER_BASE_URL, else the built-in default."""
    return override or os.environ.get("LINK_TAGGER_BASE_URL", "") or DEFAULT_BASE_URL


def tag_links(
    graph: DocumentGraph | pikepdf.Pdf,
    tag: str,
    base_url: str = DEFAULT_BASE_URL,
) -> TagLinksResult:
    """Set ``tag=<tag>`` on every tracking link of a loaded document.

    Mutates the document in place. Malformed tracking URIs are counted,
    left untouched and reported in ``warnings``.

    Args:
        graph: PdfGraph (or a pikepdf.Pdf, wrapped automatically).
        tag: Non-empty value for the ``tag`` query parameter.
        base_url: Tracking URL prefix, compared literally.

    Returns:
        TagLinksResult with total/updated counts.

    Raises:
        ValueError: if ``tag`` or ``base_url`` is empty.
    """
    if not tag:
        raise ValueError("Tag cannot be empty")
    if not base_url:
        raise ValueError("Base URL cannot be empty")

    if isinstance(graph, pikepdf.Pdf):
        graph = PdfGraph(graph)

    result = TagLinksResult()

    for entry in iter_annotations(graph):
        link = classify(entry.annotation)
        if isinstance(link, OtherAnnotation):
            continue

        plan = plan_rewrite(link, base_url, tag)
        if not plan.outcome.counted:
            continue

        result.total += 1
        if plan.warning:
            logger.warning("Page %d: %s", entry.page_number, plan.warning)
            result.warnings.append(f"Page {entry.page_number}: {plan.warning}")
        if commit(link, plan):
            result.updated += 1

        result.links.append(TrackedLink(
            page_number=entry.page_number,
            annotation_index=entry.index,
            original_uri=plan.original_uri,
            new_uri=plan.new_uri,
            outcome=plan.outcome,
            object_id=str(entry.ref) if entry.ref else "",
        ))

    logger.info(
        "Tagged links: %d updated of %d found (%d malformed)",
        result.updated,
        result.total,
        sum(1 for lnk in result.links if lnk.outcome == LinkOutcome.MALFORMED),
    )
    return result
