from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import List, Tuple

import fitz

from quizgen.core.errors import DocumentParseError

logger = logging.getLogger("extractor")

DEFAULT_MAX_CHARS = 4000


@dataclass(frozen=True)
class ParsedPage:
    page_number: int
    text: str


@dataclass(frozen=True)
class ExtractedDocument:
    pages: Tuple[ParsedPage, ...]
    sha256: str
    max_chars: int = DEFAULT_MAX_CHARS

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def text(self) -> str:
        """Every page's text followed by a newline, in page order."""
        return "".join(p.text + "\n" for p in self.pages)

    @property
    def truncated_text(self) -> str:
        return self.text[: self.max_chars]


def sha256_bytes(data: bytes) -> str:
    h = hashlib.sha256()
    h.update(data)
    return h.hexdigest()


def page_items(page: fitz.Page) -> List[str]:
    """
    Text spans of a page in content-stream order.
    Image blocks carry no lines and are skipped.
    """
    items: List[str] = []
    layout = page.get_text("dict")
    for block in layout.get("blocks", []):
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                items.append(span.get("text", ""))
    return items


class PdfTextExtractor:
    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS) -> None:
        if max_chars <= 0:
            raise ValueError("max_chars must be > 0")
        self.max_chars = max_chars

    def extract(self, data: bytes) -> ExtractedDocument:
        if not data:
            raise DocumentParseError("Uploaded file is empty")

        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise DocumentParseError(context={"reason": str(e)}) from e

        try:
            if doc.needs_pass:
                raise DocumentParseError("PDF is password protected")
            if doc.page_count == 0:
                raise DocumentParseError("PDF has no pages")

            pages: List[ParsedPage] = []
            for i in range(doc.page_count):
                page = doc.load_page(i)
                pages.append(ParsedPage(page_number=i + 1, text=" ".join(page_items(page))))
        except DocumentParseError:
            raise
        except Exception as e:
            raise DocumentParseError(context={"reason": str(e)}) from e
        finally:
            doc.close()

        extracted = ExtractedDocument(pages=tuple(pages), sha256=sha256_bytes(data), max_chars=self.max_chars)
        logger.info(
            "extracted sha256=%s pages=%s chars=%s truncated_to=%s",
            extracted.sha256[:12],
            extracted.page_count,
            len(extracted.text),
            len(extracted.truncated_text),
        )
        return extracted
