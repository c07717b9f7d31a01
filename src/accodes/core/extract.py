"""PDF page extraction with PyMuPDF.

Text is rebuilt span by span: spans sharing a baseline are concatenated, and a
change of baseline starts a new line. This keeps ALL CAPS headings and
"707.1 General." section lines on lines of their own for the classifier.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Tuple

import fitz  # PyMuPDF

from .models import DocumentMeta, RawPage

logger = logging.getLogger(__name__)

BASELINE_TOLERANCE = 0.01


def iter_page_spans(page_dict: Dict[str, Any]) -> Iterator[Tuple[float, str]]:
    """Yield (baseline_y, text) for every text span of a PyMuPDF page dict."""
    for block in page_dict.get("blocks", []):
        if block.get("type") != 0:  # image block
            continue
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                origin = span.get("origin") or (0.0, line["bbox"][3])
                yield origin[1], span.get("text", "")


def join_spans_by_baseline(spans: Iterable[Tuple[float, str]]) -> str:
    """Concatenate spans, inserting a newline whenever the baseline changes."""
    parts: List[str] = []
    last_y = None
    for y, text in spans:
        if last_y is not None and abs(y - last_y) > BASELINE_TOLERANCE:
            parts.append("\n")
        parts.append(text)
        last_y = y
    return "".join(parts)


def extract_page_text(page: fitz.Page) -> str:
    """Best-effort reading-order text of one page."""
    page_dict = page.get_text("dict")
    return join_spans_by_baseline(iter_page_spans(page_dict))


def _iter_pages(doc: fitz.Document) -> Iterator[RawPage]:
    for page in doc:
        yield RawPage(page_number=page.number + 1, text=extract_page_text(page))


@contextmanager
def open_pdf(pdf_path: Path) -> Iterator[Tuple[DocumentMeta, Iterator[RawPage]]]:
    """
    Open a PDF and yield its metadata with a lazy, single-pass page iterator.

    Pages are extracted one at a time as the caller pulls them; the document
    is closed when the context exits.
    """
    pdf_path = Path(pdf_path)
    doc = fitz.open(str(pdf_path))
    try:
        meta = DocumentMeta(file_name=pdf_path.name, total_pages=doc.page_count)
        logger.info(f"Opened PDF {meta.file_name}: {meta.total_pages} pages")
        yield meta, _iter_pages(doc)
    finally:
        doc.close()
