"""Tests for document processing and chunk metadata."""

from types import SimpleNamespace

import pytest

from contextchunker.chunking import Chunk, process_document, process_documents, sanitize_text
from contextchunker.core.models import RawDocument


def test_simple_document_metadata():
    chunks = process_document({"text": "Hello world.", "metadata": {"source": "a.md"}})

    assert chunks == [
        Chunk(
            text="Hello world.",
            metadata={
                "source": "a.md",
                "chunk_index": 0,
                "total_chunks": 1,
                "char_start": 0,
                "char_end": 12,
                "context_title": None,
                "has_steps": False,
                "step_count": 0,
                "has_code_blocks": False,
                "content_type": "documentation",
                "is_code_block": False,
                "code_language": None,
                "is_complete": True,
                "preserves_context": True,
            },
        )
    ]


@pytest.mark.parametrize(
    "document",
    [
        {"text": ""},
        {"text": "   \n\t "},
        {"text": None},
        {"text": 12345},
        {},
        None,
        "",
        "\U0001F600\U0001F600",
    ],
)
def test_no_chunks_for_empty_or_invalid_text(document):
    assert process_document(document) == []


def test_setup_guide(sample_markdown):
    chunks = process_document(
        RawDocument(text=sample_markdown, metadata={"source": "guide.md"})
    )

    assert len(chunks) == 3
    intro, code, outro = chunks

    assert intro.text == "# Setup Guide Step 1: Install the tool."
    assert intro.metadata["content_type"] == "instructions"
    assert intro.metadata["has_steps"] is True
    assert intro.metadata["step_count"] == 1
    assert intro.metadata["has_code_blocks"] is False
    assert intro.metadata["context_title"].startswith("# Setup Guide")

    assert code.text.startswith("```python print('hello')")
    assert code.text.endswith("```")
    assert code.metadata["content_type"] == "code_example"
    assert code.metadata["is_code_block"] is True
    assert code.metadata["code_language"] == "python"
    assert code.metadata["has_code_blocks"] is True
    assert code.metadata["is_complete"] is False

    assert outro.text == "Step 2: Run it. Then you are done."
    assert outro.metadata["content_type"] == "instructions"
    assert outro.metadata["is_code_block"] is False
    assert outro.metadata["has_code_blocks"] is False
    assert outro.metadata["is_complete"] is True

    for index, chunk in enumerate(chunks):
        assert chunk.metadata["chunk_index"] == index
        assert chunk.metadata["total_chunks"] == 3
        assert chunk.metadata["source"] == "guide.md"
        assert chunk.metadata["preserves_context"] is True


def test_offsets_for_repeated_text():
    raw = "Same boilerplate sentence here. " * 200
    sanitized = sanitize_text(raw)

    chunks = process_document({"text": raw})

    assert len(chunks) > 1
    starts = [chunk.metadata["char_start"] for chunk in chunks]
    assert starts == sorted(set(starts))
    for chunk in chunks:
        start, end = chunk.metadata["char_start"], chunk.metadata["char_end"]
        assert sanitized[start:end] == chunk.text


def test_camel_case_options():
    text = "Paragraph one. Paragraph two. Paragraph three."
    chunks = process_document(text, {"chunkSize": 20, "chunkOverlap": 0})

    assert len(chunks) > 1
    assert all(chunk.metadata["total_chunks"] == len(chunks) for chunk in chunks)


def test_document_limit(default_settings, monkeypatch):
    monkeypatch.setattr(default_settings, "MAX_DOCUMENT_CHARS", 5)

    with pytest.raises(ValueError, match="limit is 5"):
        process_document("longer than five")


def test_corrupted_emoji_tagged_in_chunk():
    chunks = process_document("Deploy \uf8ffüöÄ done.")
    assert [chunk.text for chunk in chunks] == ["Deploy [ROCKET] done."]


def test_document_metadata_is_merged_under_chunk_fields():
    chunks = process_document(
        {"text": "Some text.", "metadata": {"chunk_index": 99, "team": "docs"}}
    )

    assert chunks[0].metadata["chunk_index"] == 0
    assert chunks[0].metadata["team"] == "docs"


def test_non_mapping_metadata_is_ignored():
    chunks = process_document({"text": "Some text.", "metadata": "not a dict"})
    assert "not a dict" not in chunks[0].metadata.values()
    assert chunks[0].metadata["chunk_index"] == 0


def test_attribute_documents():
    document = SimpleNamespace(text="Object text.", metadata={"kind": "obj"})
    chunks = process_document(document)

    assert chunks[0].text == "Object text."
    assert chunks[0].metadata["kind"] == "obj"


def test_process_documents():
    results = process_documents(["First doc.", {"text": "Second doc."}, None])

    assert [[chunk.text for chunk in chunks] for chunks in results] == [
        ["First doc."],
        ["Second doc."],
        [],
    ]
