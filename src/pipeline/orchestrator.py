"""Pipeline orchestrator: load → tag → save → verify.

Single entry point for tagging the tracking links of a PDF on disk.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from src.models.pipeline import TagRequest, TagResult
from src.tools.link_tagger import TagLinksResult, resolve_base_url, tag_links
from src.tools.link_verifier import verify_tagged_links
from src.tools.pdf_graph import (
    DocumentLoadError,
    DocumentSaveError,
    PdfGraph,
    load_document,
    save_document,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred while processing the PDF. Please try again."


def default_output_filename(input_name: str) -> str:
    """``resume.pdf`` -> ``tagged_resume.pdf``."""
    return f"tagged_{Path(input_name).name}"


def normalize_output_filename(name: str, input_name: str = "") -> str:
    """Strip directories and make sure the name ends in .pdf.

    Falls back to the default name when ``name`` is blank.
    """
    name = Path(name.strip()).name if name.strip() else ""
    if not name:
        name = default_output_filename(input_name or "document.pdf")
    if not name.lower().endswith(".pdf"):
        name = f"{name}.pdf"
    return name


def process_bytes(
    data: bytes,
    tag: str,
    base_url: str = "",
) -> tuple[bytes, TagLinksResult]:
    """Tag an in-memory PDF and return the new bytes with the counts.

    Raises:
        ValueError: empty tag.
        DocumentLoadError / DocumentSaveError: the PDF could not be
            decoded or re-encoded. No counts are returned in that case.
    """
    if not tag.strip():
        raise ValueError("Tag cannot be empty")
    base_url = resolve_base_url(base_url)

    with load_document(data) as pdf:
        result = tag_links(PdfGraph(pdf), tag, base_url)
        out = save_document(pdf)
    return out, result


def process(
    request: TagRequest,
    on_phase: Callable[[str, str], None] | None = None,
) -> TagResult:
    """Run the tagging pipeline on a PDF file.

    Args:
        request: TagRequest with document path and tag.
        on_phase: Optional callback invoked with (phase_name, detail_message)
            at each pipeline stage.

    Returns:
        TagResult with output path, counts and warnings.
    """
    start_time = time.time()
    doc_path = request.document_path
    tag = request.tag
    base_url = resolve_base_url(request.base_url)

    logger.info("Starting tagging: %s (tag=%r)", doc_path, tag)

    def _fail(error: str) -> TagResult:
        return TagResult(
            success=False,
            input_path=doc_path,
            base_url=base_url,
            tag=tag,
            error=error,
            processing_time_seconds=time.time() - start_time,
        )

    # Validate input
    if not tag.strip():
        return _fail("Tag is required")

    path = Path(doc_path)
    if not path.exists():
        return _fail(f"File not found: {doc_path}")
    if path.suffix.lower() != ".pdf":
        return _fail("Please upload a valid PDF file.")

    output_dir = Path(request.output_dir) if request.output_dir else path.parent
    output_path = output_dir / normalize_output_filename(request.output_filename, path.name)

    # ── Phase 1: Load + tag ─────────────────────────────────────────
    if on_phase:
        on_phase("loading", f"Reading {path.name}")
    try:
        data = path.read_bytes()
        if on_phase:
            on_phase("tagging", f"Setting tag={tag} on {base_url} links")
        out_bytes, tag_result = process_bytes(data, tag, base_url)
    except (DocumentLoadError, DocumentSaveError, OSError) as e:
        logger.error("Tagging failed for %s: %s", doc_path, e)
        return _fail(GENERIC_ERROR)

    # ── Phase 2: Save ───────────────────────────────────────────────
    if on_phase:
        on_phase("saving", f"Writing {output_path.name}")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(out_bytes)
    except OSError as e:
        logger.error("Could not write %s: %s", output_path, e)
        return _fail(GENERIC_ERROR)

    warnings = list(tag_result.warnings)

    # ── Phase 3: Verify ─────────────────────────────────────────────
    if request.verify:
        if on_phase:
            on_phase("verifying", f"Checking {tag_result.total} tracking links")
        verification = verify_tagged_links(out_bytes, tag, base_url)
        if verification.error:
            warnings.append(f"Verification skipped: {verification.error}")
        warnings.extend(verification.mismatches)

    elapsed = time.time() - start_time
    logger.info(
        "Pipeline complete in %.1fs: %s (%d/%d links updated)",
        elapsed, output_path, tag_result.updated, tag_result.total,
    )
    return TagResult(
        success=True,
        input_path=doc_path,
        output_path=str(output_path),
        base_url=base_url,
        tag=tag,
        total=tag_result.total,
        updated=tag_result.updated,
        links=tag_result.links,
        warnings=warnings,
        processing_time_seconds=elapsed,
    )
