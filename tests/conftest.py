"""Shared test fixtures: programmatically build PDFs with link annotations."""

from __future__ import annotations

from pathlib import Path

import fitz
import pikepdf
import pytest
from pikepdf import Array, Dictionary, Name, String

BASE_URL = "https://link.example.com/link/"
TRACKED_URI = "https://link.example.com/link/abc?tag=old"
OTHER_URI = "https://other.com/x"
MALFORMED_URI = "https://link.example.com/link/???"


def uri_link(uri: str, rect: tuple = (72, 700, 300, 712)) -> Dictionary:
    """A /Link annotation with a /URI action, as a direct dictionary."""
    return Dictionary(
        Type=Name.Annot,
        Subtype=Name.Link,
        Rect=Array(list(rect)),
        Border=Array([0, 0, 0]),
        A=Dictionary(S=Name.URI, URI=String(uri)),
    )


def _build_pdf(path: Path, pages: list[list[tuple[Dictionary, bool]] | None]) -> Path:
    """Write a PDF with one blank page per entry.

    Each page entry is None (no /Annots) or a list of
    (annotation, indirect) pairs.
    """
    pdf = pikepdf.new()
    for annots in pages:
        page = pdf.add_blank_page(page_size=(612, 792))
        if annots is None:
            continue
        items = [pdf.make_indirect(a) if indirect else a for a, indirect in annots]
        page.obj[Name.Annots] = Array(items)
    pdf.save(path)
    pdf.close()
    return path


def _write_raw_pdf(path: Path, objects: dict[int, bytes], size: int) -> Path:
    """Write a classic-xref PDF by hand. Object numbers missing from
    ``objects`` are marked free."""
    out = bytearray(b"%PDF-1.7\n")
    offsets: dict[int, int] = {}
    for num in sorted(objects):
        offsets[num] = len(out)
        out += b"%d 0 obj\n" % num + objects[num] + b"\nendobj\n"

    xref_pos = len(out)
    out += b"xref\n0 %d\n" % size
    out += b"0000000000 65535 f \n"
    for num in range(1, size):
        if num in offsets:
            out += b"%010d 00000 n \n" % offsets[num]
        else:
            out += b"0000000000 65535 f \n"
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (size, xref_pos)

    path.write_bytes(bytes(out))
    return path


@pytest.fixture
def three_links_pdf(tmp_path: Path) -> Path:
    """Two tracking links (one indirect, one direct) and one external link."""
    return _build_pdf(tmp_path / "resume.pdf", [
        [(uri_link(TRACKED_URI), True), (uri_link(OTHER_URI, (72, 680, 300, 692)), True)],
        [(uri_link(TRACKED_URI), False)],
    ])


@pytest.fixture
def malformed_link_pdf(tmp_path: Path) -> Path:
    """A single tracking link whose URI does not parse."""
    return _build_pdf(tmp_path / "malformed.pdf", [
        [(uri_link(MALFORMED_URI), True)],
    ])


@pytest.fixture
def no_annots_pdf(tmp_path: Path) -> Path:
    """Two pages, no annotations anywhere."""
    return _build_pdf(tmp_path / "plain.pdf", [None, None])


@pytest.fixture
def mixed_annots_pdf(tmp_path: Path) -> Path:
    """Annotation shapes the tagger must ignore, plus one tracking link
    whose action is an indirect object inside an indirect /Annots array."""
    pdf = pikepdf.new()
    page = pdf.add_blank_page(page_size=(612, 792))

    text_note = Dictionary(
        Type=Name.Annot, Subtype=Name.Text, Rect=Array([10, 10, 30, 30]),
        Contents=String(TRACKED_URI),
    )
    goto_link = Dictionary(
        Type=Name.Annot, Subtype=Name.Link, Rect=Array([72, 600, 300, 612]),
        A=Dictionary(S=Name.GoTo, D=Array([page.obj, Name.Fit])),
    )
    dest_link = Dictionary(
        Type=Name.Annot, Subtype=Name.Link, Rect=Array([72, 620, 300, 632]),
        Dest=Array([page.obj, Name.Fit]),
    )
    name_uri_link = Dictionary(
        Type=Name.Annot, Subtype=Name.Link, Rect=Array([72, 640, 300, 652]),
        A=Dictionary(S=Name.URI, URI=Name("/NotAString")),
    )
    indirect_action_link = Dictionary(
        Type=Name.Annot, Subtype=Name.Link, Rect=Array([72, 700, 300, 712]),
        A=pdf.make_indirect(Dictionary(S=Name.URI, URI=String(TRACKED_URI))),
    )

    annots = Array([
        pdf.make_indirect(text_note),
        pdf.make_indirect(goto_link),
        dest_link,
        pdf.make_indirect(name_uri_link),
        pdf.make_indirect(indirect_action_link),
    ])
    page.obj[Name.Annots] = pdf.make_indirect(annots)

    path = tmp_path / "mixed.pdf"
    pdf.save(path)
    pdf.close()
    return path


@pytest.fixture
def dangling_ref_pdf(tmp_path: Path) -> Path:
    """A page whose /Annots holds a reference to a free object (5 0 R)
    next to one real tracking link (4 0 R)."""
    return _write_raw_pdf(tmp_path / "dangling.pdf", {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        3: (b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Annots [4 0 R 5 0 R] >>"),
        4: (b"<< /Type /Annot /Subtype /Link /Rect [72 700 300 712] "
            b"/A << /S /URI /URI (" + TRACKED_URI.encode() + b") >> >>"),
    }, size=6)


@pytest.fixture
def only_dangling_pdf(tmp_path: Path) -> Path:
    """A page whose only annotation entry is a dangling reference."""
    return _write_raw_pdf(tmp_path / "only_dangling.pdf", {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        3: (b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Annots [4 0 R] >>"),
    }, size=5)


@pytest.fixture
def fitz_link_pdf(tmp_path: Path) -> Path:
    """A text resume built with PyMuPDF: two tracking links, one external."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Portfolio")
    page.insert_text((72, 100), "GitHub")
    page.insert_text((72, 128), "Blog")
    page.insert_link({
        "kind": fitz.LINK_URI,
        "from": fitz.Rect(72, 60, 200, 76),
        "uri": "https://link.example.com/link/portfolio",
    })
    page.insert_link({
        "kind": fitz.LINK_URI,
        "from": fitz.Rect(72, 88, 200, 104),
        "uri": "https://link.example.com/link/github?utm_source=resume",
    })
    page.insert_link({
        "kind": fitz.LINK_URI,
        "from": fitz.Rect(72, 116, 200, 132),
        "uri": "https://blog.example.org/",
    })
    path = tmp_path / "fitz_resume.pdf"
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def link_pdf_factory(tmp_path: Path):
    """Build a one-page PDF with one indirect link per URI."""
    def _make(uris: list[str], name: str = "custom.pdf") -> Path:
        rects = [(72, 700 - 20 * i, 300, 712 - 20 * i) for i in range(len(uris))]
        return _build_pdf(tmp_path / name, [
            [(uri_link(uri, rect), True) for uri, rect in zip(uris, rects)],
        ])
    return _make


def read_uris(path: Path) -> list[str]:
    """All /URI action strings in page + annotation order."""
    uris: list[str] = []
    with pikepdf.open(path) as pdf:
        for page in pdf.pages:
            for annot in page.obj.get(Name.Annots, Array()):
                if not isinstance(annot, Dictionary):
                    continue
                action = annot.get(Name.A)
                if isinstance(action, Dictionary) and isinstance(action.get(Name.URI), String):
                    uris.append(str(action[Name.URI]))
    return uris
