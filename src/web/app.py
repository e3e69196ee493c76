"""FastAPI web application for tagging resume links.

Provides:
- PDF upload with a tag value
- The tagged PDF back as a download, with link counts in headers
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from src.pipeline.orchestrator import GENERIC_ERROR, normalize_output_filename, process_bytes
from src.tools.pdf_graph import DocumentLoadError, DocumentSaveError

load_dotenv()

logger = logging.getLogger(__name__)

MAX_UPLOAD_MB = int(os.environ.get("LINK_TAGGER_MAX_UPLOAD_MB", "10"))

app = FastAPI(title="Resume Link Tagger", version="0.1.0")


@app.get("/api/health")
async def health():
    """Health check endpoint for deployment verification."""
    return {"status": "ok"}


def _is_pdf_upload(file: UploadFile) -> bool:
    filename = file.filename or ""
    return file.content_type == "application/pdf" or Path(filename).suffix.lower() == ".pdf"


@app.post("/api/tag")
async def tag_pdf(
    file: UploadFile = File(...),
    tag: str = Form(""),
    output_filename: str = Form(""),
    base_url: str = Form(""),
):
    """Upload a PDF, get it back with every tracking link tagged."""
    filename = file.filename or "resume.pdf"

    if not _is_pdf_upload(file):
        return JSONResponse(status_code=400, content={"error": "Please upload a valid PDF file."})

    if not tag.strip():
        return JSONResponse(status_code=400, content={"error": "Tag is required"})

    content = await file.read()
    max_bytes = MAX_UPLOAD_MB * 1024 * 1024
    if len(content) > max_bytes:
        return JSONResponse(
            status_code=413,
            content={"error": f"File too large. Maximum size is {MAX_UPLOAD_MB}MB"},
        )

    try:
        out_bytes, result = process_bytes(content, tag, base_url)
    except (DocumentLoadError, DocumentSaveError) as e:
        logger.error("Tagging failed for upload %s: %s", filename, e)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    download_name = normalize_output_filename(output_filename, filename)
    # Content-Disposition must stay ASCII
    download_name = download_name.encode("ascii", "ignore").decode().replace('"', "") or "tagged.pdf"
    logger.info(
        "Tagged upload %s: %d/%d links updated", filename, result.updated, result.total,
    )
    return Response(
        content=out_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{download_name}"',
            "X-Links-Total": str(result.total),
            "X-Links-Updated": str(result.updated),
            "X-Links-Warnings": str(len(result.warnings)),
        },
    )
