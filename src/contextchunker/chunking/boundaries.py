"""
Boundary detection and classification helpers for chunking.
"""

import re
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple


class ContentType(str, Enum):
    """Coarse classification of what a chunk mostly contains."""

    CODE_EXAMPLE = "code_example"
    INSTRUCTIONS = "instructions"
    INSTALLATION = "installation"
    CODE_SETUP = "code_setup"
    CODE_DEFINITION = "code_definition"
    EXAMPLE = "example"
    TROUBLESHOOTING = "troubleshooting"
    DOCUMENTATION = "documentation"


class CodeBlock(NamedTuple):
    """A fenced code region; ``end`` is exclusive."""

    content: str
    start: int
    end: int
    language: str = "unknown"


class Separator(NamedTuple):
    pattern: "re.Pattern[str]"
    priority: int
    name: str


FENCE = "```"

_CODE_BLOCK = re.compile(r"```.*?```", re.DOTALL)
_FENCE_LANGUAGE = re.compile(r"```(\w+)")

# Lower priority number wins; the cut lands at the end of the match.
SEPARATORS: Tuple[Separator, ...] = (
    Separator(re.compile(r"\n\n(?=[A-Z#])"), 1, "section_break"),
    Separator(re.compile(r"\n\n(?=```)"), 2, "code_block_start"),
    Separator(re.compile(r"```\n\n"), 2, "code_block_end"),
    Separator(re.compile(r"\n\n(?=Step \d+|Phase \d+)"), 2, "step_break"),
    Separator(re.compile(r"\n\n(?=\d+\.|-|\*)"), 3, "list_start"),
    Separator(re.compile(r"\.\n\n"), 4, "paragraph_end"),
    Separator(re.compile(r"\n\n"), 5, "double_newline"),
    Separator(re.compile(r"\n(?=[A-Z])"), 6, "sentence_break"),
    Separator(re.compile(r"\. "), 7, "sentence_end"),
    Separator(re.compile(r"\n"), 8, "newline"),
    Separator(re.compile(r"; "), 9, "semicolon"),
    Separator(re.compile(r", "), 10, "comma"),
    Separator(re.compile(r" "), 11, "space"),
)

# Reduced set used for prose between preserved code blocks
SIMPLE_SEPARATORS: Tuple[Separator, ...] = (
    Separator(re.compile(r"\n\n"), 1, "paragraph_break"),
    Separator(re.compile(r"\. "), 2, "sentence_end"),
    Separator(re.compile(r"\n"), 3, "line_break"),
)

SECTION_BOUNDARY = re.compile(r"\n\n(?=[A-Z#]|Step \d+|Phase \d+)")

BOUNDARY_SEARCH_FRACTION = 0.3

_INSTALL_MARKERS = (
    "pip install",
    "npm install",
    "yarn add",
    "conda install",
    "apt-get install",
    "brew install",
)

_TERMINAL_PUNCTUATION_END = re.compile(r"[.!?]\s*\Z")
_LIST_ITEM_START = re.compile(r"\s*[-*]\s")
_PUNCTUATED_LIST_ITEM_END = re.compile(r"[-*]\s.*[.!?]\s*\Z")


def detect_code_language(code_block: Any) -> str:
    """Return the language tag after the opening fence, or ``"unknown"``."""
    if not isinstance(code_block, str):
        return "unknown"
    first_line = code_block.split("\n", 1)[0]
    match = _FENCE_LANGUAGE.search(first_line)
    return match.group(1) if match else "unknown"


def extract_code_blocks(text: Any) -> List[CodeBlock]:
    """Find fenced code blocks left to right.

    A trailing opening fence without a closing fence is not a block.
    """
    if not isinstance(text, str):
        return []
    return [
        CodeBlock(
            content=match.group(0),
            start=match.start(),
            end=match.end(),
            language=detect_code_language(match.group(0)),
        )
        for match in _CODE_BLOCK.finditer(text)
    ]


def block_containing(
    position: int, code_blocks: Sequence[CodeBlock]
) -> Optional[CodeBlock]:
    """Return the code block that ``position`` falls strictly inside."""
    for block in code_blocks:
        if block.start < position < block.end:
            return block
        if block.start >= position:
            break
    return None


def find_best_boundary(
    text: str,
    start: int,
    end: int,
    chunk_size: int,
    separators: Sequence[Separator] = SEPARATORS,
    code_blocks: Sequence[CodeBlock] = (),
) -> int:
    """
    Pick a cut point in the trailing part of ``text[start:end]``.

    Every separator is searched in the last 30% of the window; the one with
    the lowest priority number wins and its rightmost occurrence is used.
    Cut points inside a code block are never chosen.

    Returns:
        Absolute offset to cut at, or -1 when no separator qualifies.
    """
    search_start = max(start, end - int(chunk_size * BOUNDARY_SEARCH_FRACTION))
    best_point = -1
    best_priority = float("inf")

    for separator in separators:
        if separator.priority >= best_priority:
            continue

        candidate = -1
        for match in separator.pattern.finditer(text, search_start, end):
            point = match.end()
            if point > start and block_containing(point, code_blocks) is None:
                candidate = point

        if candidate != -1:
            best_point = candidate
            best_priority = separator.priority

    return best_point


def split_sections(text: str) -> List[Tuple[int, int]]:
    """Split on blank lines followed by a capitalized line, header, or step marker.

    Returns:
        (start, end) offsets of each non-blank section, in order.
    """
    sections = []
    position = 0
    for match in SECTION_BOUNDARY.finditer(text):
        if text[position : match.start()].strip():
            sections.append((position, match.start()))
        position = match.end()
    if text[position:].strip():
        sections.append((position, len(text)))
    return sections


def detect_content_type(chunk: Any) -> str:
    """Classify a chunk; the first matching rule wins."""
    if not isinstance(chunk, str):
        return ContentType.DOCUMENTATION.value

    if FENCE in chunk:
        return ContentType.CODE_EXAMPLE.value
    if "Step " in chunk or "Phase " in chunk:
        return ContentType.INSTRUCTIONS.value
    if any(marker in chunk for marker in _INSTALL_MARKERS):
        return ContentType.INSTALLATION.value
    if "import " in chunk or "from " in chunk:
        return ContentType.CODE_SETUP.value
    if "def " in chunk or "function " in chunk or "class " in chunk:
        return ContentType.CODE_DEFINITION.value
    if "Example" in chunk or "example:" in chunk:
        return ContentType.EXAMPLE.value
    if "Error" in chunk or "error" in chunk:
        return ContentType.TROUBLESHOOTING.value
    return ContentType.DOCUMENTATION.value


def is_complete_section(chunk: Any) -> bool:
    """
    Heuristic check that a chunk ends on a clean boundary.

    A chunk is complete when it ends in terminal punctuation, its code fences
    are balanced, and it is not a list item cut off before its punctuation.
    """
    if not isinstance(chunk, str):
        return False

    ends_with_punctuation = bool(_TERMINAL_PUNCTUATION_END.search(chunk.strip()))
    balanced_fences = chunk.count(FENCE) % 2 == 0
    truncated_list = bool(_LIST_ITEM_START.match(chunk)) and not _PUNCTUATED_LIST_ITEM_END.search(
        chunk
    )

    return ends_with_punctuation and balanced_fences and not truncated_list
