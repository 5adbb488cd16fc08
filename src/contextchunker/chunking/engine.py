"""
Main chunking engine: code-block preservation, section grouping and
priority-boundary splitting with overlap.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Union

from ..core import config
from ..core.logging import log
from ..core.models import ChunkOptions, RawDocument
from .boundaries import (
    SEPARATORS,
    SIMPLE_SEPARATORS,
    CodeBlock,
    Separator,
    block_containing,
    detect_content_type,
    extract_code_blocks,
    find_best_boundary,
    is_complete_section,
    split_sections,
)
from .context import extract_contextual_info, nearest_title
from .sanitize import sanitize_text

# Section groups may grow past chunk_size up to this factor ...
SECTION_GROUP_MAX_FACTOR = 1.5
# ... but are only used when every group reaches this share of chunk_size
SECTION_GROUP_MIN_FACTOR = 0.3

# Sentence completion looks this far past the cut for terminal punctuation
SENTENCE_COMPLETION_WINDOW = 100
# A paragraph break in this leading share of the overlap drops the partial paragraph
OVERLAP_PARAGRAPH_FRACTION = 0.7
# Chunk offsets within this distance of a code block count as that block
CODE_BLOCK_TOLERANCE = 10

_TERMINAL_PUNCTUATION = re.compile(r"[.!?]")
_ENDS_WITH_TERMINAL = re.compile(r"[.!?]\Z")

OptionsLike = Union[ChunkOptions, Mapping[str, Any], None]


class ChunkSpan(NamedTuple):
    """Chunk text with its [start, end) offsets in the split text."""

    text: str
    start: int
    end: int


class Chunk(NamedTuple):
    """A chunk handed to the vector store indexer."""

    text: str
    metadata: Dict[str, Any]


def resolve_options(options: OptionsLike = None) -> ChunkOptions:
    """Build ChunkOptions from a model, a mapping, or None (settings defaults)."""
    if options is None:
        return ChunkOptions()
    if isinstance(options, ChunkOptions):
        return options
    return ChunkOptions.model_validate(dict(options))


def _trimmed_span(text: str, start: int, end: int) -> Optional[ChunkSpan]:
    raw = text[start:end]
    stripped = raw.strip()
    if not stripped:
        return None
    lead = len(raw) - len(raw.lstrip())
    return ChunkSpan(stripped, start + lead, start + lead + len(stripped))


def _shift(spans: Iterable[ChunkSpan], offset: int) -> List[ChunkSpan]:
    return [ChunkSpan(s.text, s.start + offset, s.end + offset) for s in spans]


def split_with_priority_boundaries(
    text: str,
    chunk_size: int,
    chunk_overlap: int,
    separators: Sequence[Separator] = SEPARATORS,
    code_blocks: Sequence[CodeBlock] = (),
) -> List[ChunkSpan]:
    """
    Cursor-driven splitting at the best nearby separator.

    Each window of ``chunk_size`` characters is cut at the highest priority
    separator found in its trailing 30%, extended to finish a sentence that
    ends within 100 characters, and followed by an overlapping window. Any
    code block in ``code_blocks`` that the window reaches is kept whole.

    Returns:
        Trimmed, non-empty spans in document order.
    """
    spans: List[ChunkSpan] = []
    length = len(text)
    cursor = 0

    while cursor < length:
        end = min(cursor + chunk_size, length)

        # Pull a code block that straddles the window end into this chunk
        straddling = next(
            (
                block
                for block in code_blocks
                if block.end > cursor and block.start < end < block.end
            ),
            None,
        )
        if straddling is not None:
            end = straddling.end
            log.debug(
                "chunk.code_block_extended",
                language=straddling.language,
                chars=end - cursor,
            )
        elif end < length:
            boundary = find_best_boundary(
                text, cursor, end, chunk_size, separators, code_blocks
            )
            if boundary > cursor:
                end = boundary

        # Finish a trailing clause when its terminal punctuation is close
        if end < length and not _ENDS_WITH_TERMINAL.search(text[cursor:end].strip()):
            match = _TERMINAL_PUNCTUATION.search(
                text, end, min(end + SENTENCE_COMPLETION_WINDOW, length)
            )
            if match and block_containing(match.end(), code_blocks) is None:
                end = match.end()

        span = _trimmed_span(text, cursor, end)
        if span is not None:
            spans.append(span)

        if end >= length:
            break

        next_cursor = max(cursor + 1, end - chunk_overlap)

        overlap_text = text[next_cursor:end]
        paragraph_break = overlap_text.rfind("\n\n")
        if (
            paragraph_break != -1
            and paragraph_break < len(overlap_text) * OVERLAP_PARAGRAPH_FRACTION
        ):
            next_cursor += paragraph_break + 2

        inside = block_containing(next_cursor, code_blocks)
        if inside is not None:
            next_cursor = inside.end

        cursor = next_cursor

    return spans


def split_text_simple(text: str, chunk_size: int, chunk_overlap: int) -> List[ChunkSpan]:
    """Split prose with the reduced separator set (paragraph, sentence, line)."""
    if len(text) <= chunk_size:
        span = _trimmed_span(text, 0, len(text))
        return [span] if span else []
    return split_with_priority_boundaries(
        text, chunk_size, chunk_overlap, SIMPLE_SEPARATORS
    )


def split_around_code_blocks(
    text: str,
    code_blocks: Sequence[CodeBlock],
    chunk_size: int,
    chunk_overlap: int,
) -> List[ChunkSpan]:
    """Emit every code block verbatim and split the prose between them."""
    spans: List[ChunkSpan] = []
    current = 0

    for block in sorted(code_blocks, key=lambda b: b.start):
        if current < block.start:
            segment = _trimmed_span(text, current, block.start)
            if segment is not None:
                spans.extend(
                    _shift(
                        split_text_simple(segment.text, chunk_size, chunk_overlap),
                        segment.start,
                    )
                )

        log.debug(
            "chunk.code_block_preserved",
            language=block.language,
            chars=block.end - block.start,
            oversized=block.end - block.start > chunk_size,
        )
        spans.append(ChunkSpan(block.content, block.start, block.end))
        current = block.end

    if current < len(text):
        segment = _trimmed_span(text, current, len(text))
        if segment is not None:
            spans.extend(
                _shift(
                    split_text_simple(segment.text, chunk_size, chunk_overlap),
                    segment.start,
                )
            )

    return [span for span in spans if span.text.strip()]


def group_sections(text: str, chunk_size: int, chunk_overlap: int) -> Optional[List[ChunkSpan]]:
    """
    Keep whole logical sections together where their sizes allow it.

    Consecutive sections are merged greedily into groups of at most
    1.5 x ``chunk_size``. The grouping is only used when every group is at
    least 0.3 x ``chunk_size``; groups still larger than ``chunk_size`` are
    split at priority boundaries.

    Returns:
        Spans for the grouped text, or None when grouping does not apply.
    """
    sections = split_sections(text)
    if len(sections) < 2:
        return None

    max_group = chunk_size * SECTION_GROUP_MAX_FACTOR
    groups: List[List[int]] = []
    for start, end in sections:
        if groups and end - groups[-1][0] <= max_group:
            groups[-1][1] = end
        else:
            groups.append([start, end])

    if not all(end - start >= chunk_size * SECTION_GROUP_MIN_FACTOR for start, end in groups):
        return None

    log.debug("chunk.section_groups", sections=len(sections), groups=len(groups))

    spans: List[ChunkSpan] = []
    for start, end in groups:
        span = _trimmed_span(text, start, end)
        if span is None:
            continue
        if len(span.text) <= chunk_size:
            spans.append(span)
        else:
            spans.extend(
                _shift(
                    split_with_priority_boundaries(span.text, chunk_size, chunk_overlap),
                    span.start,
                )
            )
    return spans


def split_into_spans(text: Any, options: OptionsLike = None) -> List[ChunkSpan]:
    """
    Split ``text`` into chunk spans, choosing the first strategy that applies.

    1. Text that fits in one chunk is returned unchanged.
    2. With code blocks (and preservation on), blocks become atomic chunks.
    3. With section boundaries (and preservation on), sections are grouped.
    4. Otherwise the text is cut at priority boundaries.
    """
    if not isinstance(text, str):
        return []

    opts = resolve_options(options)

    if len(text) <= opts.chunk_size:
        return [ChunkSpan(text, 0, len(text))]

    if opts.preserve_code_blocks:
        code_blocks = extract_code_blocks(text)
        if code_blocks:
            return split_around_code_blocks(
                text, code_blocks, opts.chunk_size, opts.chunk_overlap
            )

    if opts.preserve_sections:
        grouped = group_sections(text, opts.chunk_size, opts.chunk_overlap)
        if grouped is not None:
            return grouped

    return split_with_priority_boundaries(text, opts.chunk_size, opts.chunk_overlap)


def split_into_chunks(text: Any, options: OptionsLike = None) -> List[str]:
    """Split ``text`` into chunk strings; see :func:`split_into_spans`."""
    return [span.text for span in split_into_spans(text, options)]


def _matching_code_block(
    code_blocks: Sequence[CodeBlock], start: int, end: int
) -> Optional[CodeBlock]:
    for block in code_blocks:
        if (
            abs(block.start - start) < CODE_BLOCK_TOLERANCE
            and abs(block.end - end) < CODE_BLOCK_TOLERANCE
        ):
            return block
    return None


def process_document(document: Any, options: OptionsLike = None) -> List[Chunk]:
    """
    Sanitize, split and annotate a document for indexing.

    Args:
        document: RawDocument, mapping with ``text``/``metadata``, or string
        options: ChunkOptions or a mapping of its fields (snake or camel case)

    Returns:
        Chunks whose metadata merges the document metadata with positional
        context, content classification and completeness flags.

    Raises:
        ValueError: Invalid options, or text longer than MAX_DOCUMENT_CHARS.
    """
    opts = resolve_options(options)
    doc = RawDocument.coerce(document)

    max_chars = config.SETTINGS.MAX_DOCUMENT_CHARS
    if max_chars is not None and isinstance(doc.text, str) and len(doc.text) > max_chars:
        raise ValueError(
            f"Document has {len(doc.text)} characters, limit is {max_chars}"
        )

    sanitized = sanitize_text(doc.text)
    if not sanitized:
        return []

    context = extract_contextual_info(sanitized)
    spans = split_into_spans(sanitized, opts)

    pieces = []
    for span in spans:
        chunk_text = sanitize_text(span.text)
        if not chunk_text:
            continue
        lead = span.text.find(chunk_text)
        start = span.start + max(lead, 0)
        end = start + len(chunk_text) if lead != -1 else span.end
        pieces.append((chunk_text, start, end))

    total = len(pieces)
    chunks: List[Chunk] = []
    for index, (chunk_text, start, end) in enumerate(pieces):
        title = nearest_title(context.titles, start)
        steps = [step for step in context.steps if start <= step.index < end]
        code_block = _matching_code_block(context.code_blocks, start, end)

        metadata = {
            **doc.metadata,
            "chunk_index": index,
            "total_chunks": total,
            "char_start": start,
            "char_end": end,
            "context_title": title.text if title else None,
            "has_steps": bool(steps),
            "step_count": len(steps),
            "has_code_blocks": any(
                block.start < end and block.end > start
                for block in context.code_blocks
            ),
            "content_type": detect_content_type(chunk_text),
            "is_code_block": code_block is not None,
            "code_language": code_block.language if code_block else None,
            "is_complete": is_complete_section(chunk_text),
            "preserves_context": True,
        }
        chunks.append(Chunk(text=chunk_text, metadata=metadata))

    log.debug(
        "document.processed",
        chars=len(sanitized),
        chunks=total,
        code_blocks=len(context.code_blocks),
    )
    return chunks


def process_documents(
    documents: Iterable[Any], options: OptionsLike = None
) -> List[List[Chunk]]:
    """Process each document independently with the same options."""
    opts = resolve_options(options)
    return [process_document(document, opts) for document in documents]
