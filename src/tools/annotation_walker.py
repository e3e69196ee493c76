"""Enumerate every annotation dictionary in a document, page by page.

The walker only reads. It yields annotations in page order, then in
/Annots array order, so repeated runs over the same file visit links
in the same sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Protocol

from src.tools.pdf_graph import ObjectRef

logger = logging.getLogger(__name__)


class DocumentGraph(Protocol):
    """What the walker needs from a loaded document."""

    def pages(self) -> Iterable[Any]: ...

    def annotation_entries(self, page: Any) -> list[Any] | None: ...

    def resolve(self, ref: ObjectRef) -> Any | None: ...

    def is_dictionary(self, obj: Any) -> bool: ...


@dataclass
class AnnotationEntry:
    """A resolved annotation and where it was found."""
    page_number: int  # 1-based
    index: int  # position in the page's /Annots array
    annotation: Any
    ref: ObjectRef | None = None  # set when the annotation is an indirect object


def iter_annotations(graph: DocumentGraph) -> Iterator[AnnotationEntry]:
    """Yield every annotation dictionary across all pages.

    Indirect entries are resolved through the graph. Dangling references
    and entries that are not dictionaries are skipped.
    """
    for page_number, page in enumerate(graph.pages(), start=1):
        entries = graph.annotation_entries(page)
        if not entries:
            continue

        for index, entry in enumerate(entries):
            ref = entry if isinstance(entry, ObjectRef) else None
            annotation = graph.resolve(ref) if ref is not None else entry

            if annotation is None:
                logger.debug(
                    "Page %d annotation %d: dangling reference %s, skipped",
                    page_number, index, ref,
                )
                continue
            if not graph.is_dictionary(annotation):
                logger.debug(
                    "Page %d annotation %d: not a dictionary, skipped",
                    page_number, index,
                )
                continue

            yield AnnotationEntry(
                page_number=page_number,
                index=index,
                annotation=annotation,
                ref=ref,
            )
