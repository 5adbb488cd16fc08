"""
Text sanitization for vector storage.

Documentation pasted through editors and CMS exports often carries emoji
whose UTF-8 bytes were decoded as Mac Roman. Those sequences are mapped to
bracketed ASCII tags; everything outside a Latin/punctuation allow-list is
dropped and whitespace is collapsed.
"""

import re
from typing import Any, List, Tuple

# UTF-8 emoji bytes rendered as Mac Roman -> ASCII tag
CORRUPTED_EMOJI: Tuple[Tuple[str, str], ...] = (
    ("\uf8ffüöÄ", "[ROCKET]"),
    ("‚úÖ", "[CHECK]"),
    ("\uf8ffüéâ", "[CELEBRATION]"),
    ("‚ùå", "[X]"),
    ("\uf8ffüîß", "[WRENCH]"),
    ("\uf8ffüìù", "[MEMO]"),
    ("\uf8ffüîç", "[SEARCH]"),
    ("‚ö°", "[LIGHTNING]"),
    ("\uf8ffüõ†Ô∏è", "[TOOLS]"),
    ("\uf8ffüîÑ", "[REFRESH]"),
    ("\uf8ffüìä", "[CHART]"),
    ("\uf8ffüéØ", "[TARGET]"),
    ("\uf8ffüîê", "[LOCK]"),
    ("\uf8ffüåü", "[STAR]"),
    ("\uf8ffüí°", "[BULB]"),
    ("‚≠ê", "[STAR]"),
    ("\uf8ffüèÜ", "[TROPHY]"),
    ("\uf8ffüö®", "[ALERT]"),
    ("\uf8ffüíª", "[COMPUTER]"),
    ("\uf8ffüì±", "[PHONE]"),
    ("\uf8ffüîó", "[LINK]"),
)

_SURROGATES = re.compile(r"[\ud800-\udfff]")

# U+FDD0..U+FDEF plus the last two code points of each of the 17 planes
_NONCHARACTERS = re.compile(
    "[\\ufdd0-\\ufdef"
    + "".join(
        f"\\U{(plane << 16) | 0xFFFE:08x}\\U{(plane << 16) | 0xFFFF:08x}"
        for plane in range(17)
    )
    + "]"
)

# Basic Latin, Latin-1 Supplement, Latin Extended A/B, Latin Extended
# Additional, General Punctuation, Currency Symbols, Letterlike Symbols
_OUTSIDE_ALLOWED_BLOCKS = re.compile(
    r"[^\x00-\x7f\xa0-\u024f\u1e00-\u1eff\u2000-\u206f\u20a0-\u20cf\u2100-\u214f]"
)

_WHITESPACE_RUN = re.compile(r"\s+")


def _replace_corrupted_emoji(text: str) -> str:
    for sequence, tag in CORRUPTED_EMOJI:
        text = text.replace(sequence, tag)
    return text


def _filter_characters(text: str) -> str:
    text = _SURROGATES.sub("", text)
    text = _NONCHARACTERS.sub("", text)
    return _OUTSIDE_ALLOWED_BLOCKS.sub("", text)


def sanitize_text(text: Any) -> str:
    """Normalize arbitrary input into a storage-safe string.

    Non-string input yields an empty string. The result is a fixed point:
    ``sanitize_text(sanitize_text(x)) == sanitize_text(x)``.
    """
    if not isinstance(text, str) or not text:
        return ""

    # Deleting a character can glue two halves of a corrupted sequence
    # together, so replace and filter until nothing changes.
    previous = None
    sanitized = text
    while sanitized != previous:
        previous = sanitized
        sanitized = _filter_characters(_replace_corrupted_emoji(sanitized))

    return collapse_whitespace(sanitized)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RUN.sub(" ", text).strip()


def find_replacements(text: Any) -> List[Tuple[str, str]]:
    """List the corrupted sequences in ``text`` that sanitization rewrites."""
    if not isinstance(text, str):
        return []
    return [(sequence, tag) for sequence, tag in CORRUPTED_EMOJI if sequence in text]
