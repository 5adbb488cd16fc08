"""
Contextchunker Chunking Package

Sanitization, structural context extraction and boundary-aware splitting
with atomic code blocks and overlap.
"""

from .boundaries import (
    CodeBlock,
    ContentType,
    detect_code_language,
    detect_content_type,
    extract_code_blocks,
    is_complete_section,
)
from .context import ContextInfo, ContextMatch, extract_contextual_info
from .engine import (
    Chunk,
    ChunkSpan,
    process_document,
    process_documents,
    split_into_chunks,
    split_into_spans,
)
from .sanitize import sanitize_text
from .verify import ValidationReport, clean_documents, validate_documents

__all__ = [
    "Chunk",
    "ChunkSpan",
    "CodeBlock",
    "ContentType",
    "ContextInfo",
    "ContextMatch",
    "ValidationReport",
    "clean_documents",
    "detect_code_language",
    "detect_content_type",
    "extract_code_blocks",
    "extract_contextual_info",
    "is_complete_section",
    "process_document",
    "process_documents",
    "sanitize_text",
    "split_into_chunks",
    "split_into_spans",
    "validate_documents",
]
