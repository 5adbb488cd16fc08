"""Tests for structural context extraction."""

from contextchunker.chunking.context import (
    ContextMatch,
    extract_contextual_info,
    extract_steps,
    extract_titles,
    nearest_title,
)

DOC = (
    "# Getting Started\n"
    "Intro line.\n"
    "Configuration:\n"
    "Set the values.\n\n"
    "Step 1: Install the package\n"
    "phase 2 - configure\n"
    "```bash\npip install x\n```\n"
)


def test_titles_are_headers_and_colon_lines():
    titles = extract_titles(DOC)

    assert [title.text for title in titles] == ["# Getting Started", "Configuration:"]
    assert titles[0].index == 0
    assert titles[1].index == DOC.index("Configuration:")


def test_header_levels():
    text = "###### Deep\n####### Too deep\n## Mid"
    assert [title.text for title in extract_titles(text)] == ["###### Deep", "## Mid"]


def test_steps_case_insensitive_with_labels():
    steps = extract_steps(DOC)

    assert [step.text for step in steps] == [
        "Step 1: Install the package",
        "phase 2 - configure",
    ]
    assert steps[0].index == DOC.index("Step 1")
    assert steps[1].index == DOC.index("phase 2")


def test_step_labels_stop_at_sentence_end_in_flattened_text():
    text = "Step 1: Install it. More prose. Step 2: Run it. Done."
    steps = extract_steps(text)

    assert [step.text for step in steps] == ["Step 1: Install it", "Step 2: Run it"]


def test_contextual_info_collects_all_scans():
    info = extract_contextual_info(DOC)

    assert len(info.titles) == 2
    assert len(info.steps) == 2
    assert len(info.code_blocks) == 1
    assert info.code_blocks[0].language == "bash"
    assert info.code_blocks[0].start == DOC.index("```bash")


def test_contextual_info_for_non_string():
    info = extract_contextual_info(None)
    assert info.titles == [] and info.steps == [] and info.code_blocks == []


def test_nearest_title():
    titles = [ContextMatch("# A", 0), ContextMatch("# B", 50), ContextMatch("# C", 120)]

    assert nearest_title(titles, 0).text == "# A"
    assert nearest_title(titles, 80).text == "# B"
    assert nearest_title(titles, 120).text == "# C"
    assert nearest_title(titles[1:], 10) is None
    assert nearest_title([], 10) is None
