"""Load, walk and save the PDF object graph via pikepdf.

pikepdf owns all binary parsing and serialization. This module only
exposes the handful of graph operations the link tagger needs:
pages, the raw entries of a page's /Annots array, and resolution of
indirect references back to the objects the graph will serialize.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import pikepdf

logger = logging.getLogger(__name__)


class DocumentLoadError(Exception):
    """The input could not be decoded as a PDF."""


class DocumentSaveError(Exception):
    """The (possibly modified) graph could not be serialized."""


@dataclass(frozen=True)
class ObjectRef:
    """An indirect reference: only the object identity, never the object."""
    objnum: int
    generation: int = 0

    def __str__(self) -> str:
        return f"{self.objnum} {self.generation} R"


def load_document(source: bytes | str | Path) -> pikepdf.Pdf:
    """Open PDF bytes or a PDF file as a pikepdf object graph.

    Raises:
        DocumentLoadError: if the data is not a readable PDF.
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            return pikepdf.open(io.BytesIO(source))
        return pikepdf.open(str(source))
    except (pikepdf.PdfError, OSError, ValueError) as e:
        raise DocumentLoadError(f"Could not open PDF: {e}") from e


def save_document(pdf: pikepdf.Pdf) -> bytes:
    """Serialize the graph back to bytes, preserving unrelated structure.

    Raises:
        DocumentSaveError: if pikepdf cannot write the document.
    """
    buf = io.BytesIO()
    try:
        pdf.save(buf)
    except (pikepdf.PdfError, OSError, ValueError) as e:
        raise DocumentSaveError(f"Could not save PDF: {e}") from e
    data = buf.getvalue()
    logger.debug("Serialized PDF: %d bytes", len(data))
    return data


class PdfGraph:
    """Read access to a pikepdf document in the shape the walker expects."""

    def __init__(self, pdf: pikepdf.Pdf):
        self.pdf = pdf

    def pages(self) -> Iterator[pikepdf.Dictionary]:
        for page in self.pdf.pages:
            yield page.obj

    def annotation_entries(self, page: pikepdf.Dictionary) -> list[Any] | None:
        """Return the page's /Annots entries, indirect ones as ObjectRef.

        Direct annotation dictionaries are returned as-is so edits land in
        the array that holds them. None when the page has no annotations.
        """
        annots = page.get(pikepdf.Name.Annots)
        if annots is None:
            return None
        if not isinstance(annots, pikepdf.Array):
            logger.debug("Ignoring non-array /Annots on page %s", page.objgen)
            return None

        entries: list[Any] = []
        for item in annots:
            if isinstance(item, pikepdf.Object) and item.is_indirect:
                entries.append(ObjectRef(*item.objgen))
            else:
                entries.append(item)
        return entries

    def resolve(self, ref: ObjectRef) -> pikepdf.Object | None:
        """Look up an indirect object. None for dangling references."""
        try:
            obj = self.pdf.get_object((ref.objnum, ref.generation))
        except (pikepdf.PdfError, ValueError) as e:
            logger.debug("Could not resolve %s: %s", ref, e)
            return None
        # pikepdf hands back PDF null as None
        return obj

    def is_dictionary(self, obj: Any) -> bool:
        return isinstance(obj, pikepdf.Dictionary)
