"""
Structural context scanning: titles, step/phase markers and code blocks.

Offsets refer to the text that was scanned so chunks can later be matched
to the context that precedes or overlaps them.
"""

import re
from typing import Any, List, NamedTuple

from .boundaries import CodeBlock, extract_code_blocks


class ContextMatch(NamedTuple):
    text: str
    index: int


class ContextInfo(NamedTuple):
    titles: List[ContextMatch]
    steps: List[ContextMatch]
    code_blocks: List[CodeBlock]


# Markdown headers, or "Capitalized label:" lines
_TITLE = re.compile(r"^(?:#{1,6}[ \t]+[^\n]+|[A-Z][^\n]*:\n)", re.MULTILINE)
# Label text stops at the line or sentence end; sanitized text has no newlines
_STEP = re.compile(r"(?:Step \d+|Phase \d+)[:\- \t]*[^\n.!?]*", re.IGNORECASE)


def extract_titles(text: str) -> List[ContextMatch]:
    return [
        ContextMatch(text=match.group(0).strip(), index=match.start())
        for match in _TITLE.finditer(text)
    ]


def extract_steps(text: str) -> List[ContextMatch]:
    return [
        ContextMatch(text=match.group(0).strip(), index=match.start())
        for match in _STEP.finditer(text)
    ]


def extract_contextual_info(text: Any) -> ContextInfo:
    """Run the title, step and code-block scans over ``text``."""
    if not isinstance(text, str):
        return ContextInfo(titles=[], steps=[], code_blocks=[])

    return ContextInfo(
        titles=extract_titles(text),
        steps=extract_steps(text),
        code_blocks=extract_code_blocks(text),
    )


def nearest_title(titles: List[ContextMatch], position: int) -> ContextMatch | None:
    """Latest title starting at or before ``position``."""
    preceding = [title for title in titles if title.index <= position]
    return max(preceding, key=lambda title: title.index) if preceding else None
