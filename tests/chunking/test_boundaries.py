"""Tests for code block extraction, boundary search and classification."""

import pytest

from contextchunker.chunking.boundaries import (
    ContentType,
    block_containing,
    detect_code_language,
    detect_content_type,
    extract_code_blocks,
    find_best_boundary,
    is_complete_section,
    split_sections,
)


class TestCodeBlocks:
    """Test fenced code block detection."""

    def test_extracts_blocks_in_order(self):
        text = "Intro\n```python\nprint(1)\n```\nMid\n```\nraw\n```"
        blocks = extract_code_blocks(text)

        assert len(blocks) == 2
        assert blocks[0].language == "python"
        assert blocks[1].language == "unknown"
        assert blocks[0].start == text.index("```python")
        assert blocks[0].start < blocks[0].end <= blocks[1].start
        for block in blocks:
            assert text[block.start : block.end] == block.content
            assert block.content.startswith("```")
            assert block.content.endswith("```")

    def test_unbalanced_trailing_fence_is_not_a_block(self):
        assert extract_code_blocks("Text before ```python\nx = 1\n") == []

    def test_odd_fence_count_keeps_first_pair(self):
        blocks = extract_code_blocks("```a``` then ```b")
        assert [block.content for block in blocks] == ["```a```"]

    def test_non_string_input(self):
        assert extract_code_blocks(None) == []

    @pytest.mark.parametrize(
        "block,expected",
        [
            ("```javascript\nconsole.log(1)\n```", "javascript"),
            ("```bash echo hi ```", "bash"),
            ("```\nplain\n```", "unknown"),
            (None, "unknown"),
        ],
    )
    def test_detect_code_language(self, block, expected):
        assert detect_code_language(block) == expected

    def test_block_containing(self):
        text = "aaa ```x``` bbb"
        blocks = extract_code_blocks(text)
        start, end = blocks[0].start, blocks[0].end

        assert block_containing(start + 1, blocks) == blocks[0]
        assert block_containing(start, blocks) is None
        assert block_containing(end, blocks) is None
        assert block_containing(1, blocks) is None


class TestFindBestBoundary:
    """Test priority-ordered separator search."""

    def test_higher_priority_beats_later_position(self):
        text = "x" * 75 + "\n\nC" + "y" * 12 + ". " + "z" * 50
        # Section break ends at 77; the sentence end at 92 has lower priority
        assert find_best_boundary(text, 0, 100, 100) == 77

    def test_rightmost_occurrence_of_winning_separator(self):
        text = "w" * 75 + ", " + "w" * 10 + ", " + "w" * 50
        assert find_best_boundary(text, 0, 100, 100) == 89

    def test_only_trailing_window_is_searched(self):
        text = "a. " + "b" * 200
        assert find_best_boundary(text, 0, 100, 100) == -1

    def test_cut_inside_code_block_is_rejected(self):
        text = "x" * 72 + " ```a b c d e f g h```" + "y" * 50
        blocks = extract_code_blocks(text)
        point = find_best_boundary(text, 0, 100, 100, code_blocks=blocks)
        # Only the space before the fence is outside the block
        assert point == 73
        assert block_containing(point, blocks) is None


class TestSplitSections:
    """Test section boundary detection."""

    def test_sections_split_on_headers_capitals_and_steps(self):
        text = "Intro text\n\n# Header\nbody\n\nStep 1 do\n\nlowercase continues"
        sections = split_sections(text)

        assert [text[start:end] for start, end in sections] == [
            "Intro text",
            "# Header\nbody",
            "Step 1 do\n\nlowercase continues",
        ]

    def test_no_boundaries(self):
        assert split_sections("one paragraph only") == [(0, 18)]


class TestContentType:
    """Test first-match-wins content classification."""

    @pytest.mark.parametrize(
        "chunk,expected",
        [
            ("```python\nprint(1)\n```", ContentType.CODE_EXAMPLE),
            ("Step 1: configure the service.", ContentType.INSTRUCTIONS),
            ("Phase 2 covers rollout.", ContentType.INSTRUCTIONS),
            ("Step 2: pip install requests", ContentType.INSTRUCTIONS),
            ("Run pip install requests to begin.", ContentType.INSTALLATION),
            ("Use npm install to fetch packages.", ContentType.INSTALLATION),
            ("import os", ContentType.CODE_SETUP),
            ("def main(): pass", ContentType.CODE_DEFINITION),
            ("class Handler: pass", ContentType.CODE_DEFINITION),
            ("Example usage below.", ContentType.EXAMPLE),
            ("An Error occurred.", ContentType.TROUBLESHOOTING),
            ("Plain prose here.", ContentType.DOCUMENTATION),
        ],
    )
    def test_detect_content_type(self, chunk, expected):
        assert detect_content_type(chunk) == expected.value

    def test_code_example_literal(self):
        assert detect_content_type("```python\nprint(1)\n```") == "code_example"

    def test_non_string_is_documentation(self):
        assert detect_content_type(None) == "documentation"


class TestCompleteSection:
    """Test the completeness heuristic."""

    def test_complete_sentence(self):
        assert is_complete_section("This is a sentence.") is True

    def test_unfinished_list(self):
        assert is_complete_section("- unfinished list") is False

    def test_punctuated_list(self):
        assert is_complete_section("- item one.\n- item two.") is True

    def test_missing_punctuation(self):
        assert is_complete_section("No punctuation") is False

    def test_unbalanced_fence(self):
        assert is_complete_section("```python\nx = 1\nDone.") is False

    def test_balanced_fence_followed_by_sentence(self):
        assert is_complete_section("```python\nx = 1\n```\nDone!") is True

    def test_non_string(self):
        assert is_complete_section(None) is False
