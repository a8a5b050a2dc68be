"""Candidate document validation and PDF text rendering."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

import pymupdf
import pymupdf4llm
import structlog

from .errors import DocumentRejected

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "text/plain",
        "text/markdown",
        "image/png",
        "image/jpeg",
        "image/webp",
    }
)

_EXTENSION_MIME: dict[str, str] = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}

_MAGIC_BYTES: dict[str, bytes] = {
    "application/pdf": b"%PDF",
    "image/png": b"\x89PNG\r\n\x1a\n",
    "image/jpeg": b"\xff\xd8\xff",
    "image/webp": b"RIFF",
}

_logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class DocumentConfig:
    max_size_mb: float = 10.0
    render_pdf_text: bool = True
    exclude_patterns: Sequence[str] = field(default_factory=tuple)


@dataclass(slots=True)
class LoadedDocument:
    """Validated document bytes plus whatever text could be rendered locally."""

    data: bytes
    mime_type: str
    page_count: int
    text: str | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def document_type(self) -> str:
        return self.mime_type.split("/", 1)[1]


def guess_mime_type(path: str | Path) -> str:
    """Map a file extension to a supported MIME type."""
    suffix = Path(path).suffix.lower()
    try:
        return _EXTENSION_MIME[suffix]
    except KeyError:
        raise DocumentRejected(
            f"Unsupported document extension {suffix or '(none)'}",
            {"path": str(path), "supported": sorted(_EXTENSION_MIME)},
        ) from None


def read_document(path: str | Path, *, config: DocumentConfig | None = None) -> LoadedDocument:
    """Read and validate a document from disk."""
    path = Path(path)
    if not path.is_file():
        raise DocumentRejected(f"Document not found: {path}", {"path": str(path)})
    return load_document(path.read_bytes(), guess_mime_type(path), config=config)


def load_document(
    data: bytes,
    mime_type: str,
    *,
    config: DocumentConfig | None = None,
) -> LoadedDocument:
    """Validate raw bytes and prepare them for extraction.

    Parameters
    ----------
    data:
        Raw document bytes as uploaded.
    mime_type:
        Declared MIME type. It must be supported and, for binary formats,
        agree with the file signature.
    config:
        Size limit, PDF rendering switch and boilerplate line patterns to drop
        from rendered text.
    """

    config = config or DocumentConfig()
    mime_type = (mime_type or "").split(";", 1)[0].strip().lower()

    if mime_type not in SUPPORTED_MIME_TYPES:
        raise DocumentRejected(
            f"Unsupported document type {mime_type or '(none)'}",
            {"mimeType": mime_type, "supported": sorted(SUPPORTED_MIME_TYPES)},
        )
    if not data:
        raise DocumentRejected("Document is empty", {"mimeType": mime_type})

    max_bytes = int(config.max_size_mb * 1024 * 1024)
    if len(data) > max_bytes:
        raise DocumentRejected(
            f"Document too large: {len(data) / (1024 * 1024):.1f}MB exceeds "
            f"{config.max_size_mb:g}MB limit",
            {"sizeBytes": len(data), "maxBytes": max_bytes},
        )

    signature = _MAGIC_BYTES.get(mime_type)
    if signature is not None and not data.startswith(signature):
        raise DocumentRejected(
            f"Document content does not match {mime_type}", {"mimeType": mime_type}
        )
    if mime_type == "image/webp" and data[8:12] != b"WEBP":
        raise DocumentRejected("Document content does not match image/webp")

    if mime_type == "application/pdf":
        document = _load_pdf(data, config)
    elif mime_type.startswith("text/"):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DocumentRejected("Text document is not valid UTF-8") from exc
        document = LoadedDocument(
            data=data,
            mime_type=mime_type,
            page_count=1,
            text=_strip_lines(text, config.exclude_patterns),
        )
    else:
        document = LoadedDocument(data=data, mime_type=mime_type, page_count=1)

    _logger.info(
        "document.loaded",
        mime_type=document.mime_type,
        size_kb=round(document.size_bytes / 1024, 1),
        pages=document.page_count,
        has_text=document.text is not None,
    )
    return document


def _load_pdf(data: bytes, config: DocumentConfig) -> LoadedDocument:
    try:
        pdf = pymupdf.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise DocumentRejected(f"Unreadable PDF: {exc}") from exc

    with pdf:
        if pdf.needs_pass:
            raise DocumentRejected("PDF is password protected")
        page_count = pdf.page_count
        if page_count < 1:
            raise DocumentRejected("PDF has no pages")
        text: str | None = None
        if config.render_pdf_text:
            markdown = pymupdf4llm.to_markdown(pdf)
            text = _strip_lines(markdown, config.exclude_patterns) or None

    return LoadedDocument(
        data=data, mime_type="application/pdf", page_count=page_count, text=text
    )


def _strip_lines(text: str, excludes: Sequence[str]) -> str:
    if not excludes:
        return text
    patterns = _build_patterns(excludes)
    kept = [
        line
        for line in text.splitlines()
        if not line.strip() or not any(pattern.search(line) for pattern in patterns)
    ]
    return "\n".join(kept)


def _build_patterns(excludes: Iterable[str]) -> list[re.Pattern[str]]:
    # Boilerplate footers often carry a page counter such as " 1 / 3".
    return [re.compile(rf"{re.escape(text)}(?:\s+\d+\s*/\s*\d+)?") for text in excludes]


__all__ = [
    "DocumentConfig",
    "LoadedDocument",
    "SUPPORTED_MIME_TYPES",
    "guess_mime_type",
    "load_document",
    "read_document",
]
