"""
Knowledge base validation: run a document collection through the chunker
and report anything the vector store indexer would reject.
"""

import json
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

from ..core import config
from ..core.logging import log
from ..core.models import RawDocument
from .engine import OptionsLike, process_document, resolve_options
from .sanitize import collapse_whitespace, find_replacements, sanitize_text


class ValidationIssue(BaseModel):
    doc_index: int
    chunk_index: Optional[int] = None
    kind: str
    message: str


class ValidationReport(BaseModel):
    documents: int = 0
    total_chunks: int = 0
    issues: List[ValidationIssue] = Field(default_factory=list)
    content_types: Dict[str, int] = Field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return not self.issues


def _is_json_serializable(value: Any) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


def validate_documents(
    documents: Iterable[Any],
    options: OptionsLike = None,
    max_chunk_chars: Optional[int] = None,
) -> ValidationReport:
    """
    Validate every document before it is uploaded to a vector store.

    Args:
        documents: RawDocuments or mappings with ``text``/``metadata``
        options: Chunking options used for the dry run
        max_chunk_chars: Largest acceptable chunk (defaults to settings)

    Returns:
        Report listing issues per document and chunk
    """
    if max_chunk_chars is None:
        max_chunk_chars = config.SETTINGS.VALIDATE_MAX_CHUNK_CHARS
    opts = resolve_options(options)

    report = ValidationReport()
    content_types: Counter = Counter()

    def add_issue(doc_index: int, kind: str, message: str, chunk_index: Optional[int] = None) -> None:
        issue = ValidationIssue(
            doc_index=doc_index, chunk_index=chunk_index, kind=kind, message=message
        )
        report.issues.append(issue)
        log.warning("validate.issue", **issue.model_dump())

    for doc_index, document in enumerate(documents):
        report.documents += 1

        if isinstance(document, Mapping):
            raw_text = document.get("text")
        else:
            raw_text = getattr(document, "text", None)
        if not isinstance(raw_text, str) or not raw_text.strip():
            add_issue(doc_index, "invalid_text", "Missing or invalid text field")
            continue

        # Whitespace collapsing alone is not worth reporting
        if sanitize_text(raw_text) != collapse_whitespace(raw_text):
            replaced = ", ".join(
                f"{seq!r} -> {tag}" for seq, tag in find_replacements(raw_text)
            )
            message = "Contains problematic Unicode characters"
            if replaced:
                message = f"{message} (replaced: {replaced})"
            add_issue(doc_index, "unicode", message)

        doc = RawDocument.coerce(document)
        if not _is_json_serializable(doc.metadata):
            add_issue(doc_index, "metadata", "Metadata is not JSON serializable")
            continue

        try:
            chunks = process_document(doc, opts)
        except ValueError as e:
            add_issue(doc_index, "chunking", f"Chunking failed - {e}")
            continue

        report.total_chunks += len(chunks)

        for chunk in chunks:
            chunk_index = chunk.metadata["chunk_index"]
            content_types[chunk.metadata["content_type"]] += 1

            if len(chunk.text) > max_chunk_chars:
                add_issue(
                    doc_index,
                    "oversize",
                    f"Too large ({len(chunk.text)} chars)",
                    chunk_index,
                )
            if not chunk.text.strip():
                add_issue(doc_index, "empty", "Empty chunk", chunk_index)
            if not _is_json_serializable(chunk.metadata):
                add_issue(
                    doc_index,
                    "metadata",
                    "Chunk metadata is not JSON serializable",
                    chunk_index,
                )

    report.content_types = dict(content_types)

    log.info(
        "validate.complete",
        documents=report.documents,
        chunks=report.total_chunks,
        issues=len(report.issues),
        passed=report.passed,
    )
    return report


def clean_documents(documents: Iterable[Any]) -> List[RawDocument]:
    """Return sanitized copies of ``documents`` ready for upload."""
    cleaned = []
    for document in documents:
        doc = RawDocument.coerce(document)
        cleaned.append(RawDocument(text=sanitize_text(doc.text), metadata=dict(doc.metadata)))
    return cleaned
