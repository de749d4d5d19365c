# tests/test_paragraph_loader.py

import json

import pytest

from ccc_retrieval.infrastructure.paragraph_loader import ParagraphLoader


def _write(tmp_path, records):
    path = tmp_path / "corpus.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


def test_loads_scraper_format_sorted_by_number(tmp_path):
    path = _write(tmp_path, [
        {"id": 3, "text": "third"},
        {"id": 1, "text": "first"},
        {"id": 2, "text": "second"},
    ])

    paragraphs = ParagraphLoader().load_file(path)

    assert [p.id for p in paragraphs] == [1, 2, 3]
    assert paragraphs[0].text == "first"


def test_accepts_database_export_field_names(tmp_path):
    path = _write(tmp_path, [{"paragraph_number": 283, "content": "The question about origins."}])

    paragraphs = ParagraphLoader().load_file(path)

    assert paragraphs[0].id == 283
    assert paragraphs[0].text == "The question about origins."


def test_whitespace_is_normalised(tmp_path):
    path = _write(tmp_path, [{"id": 1, "text": "  line one\n\n   line\ttwo  "}])
    assert ParagraphLoader().load_file(path)[0].text == "line one line two"


def test_invalid_records_are_skipped(tmp_path):
    path = _write(tmp_path, [
        {"id": 0, "text": "paragraph numbers start at one"},
        {"id": 2, "text": ""},
        {"text": "no number"},
        {"id": 4, "text": "kept"},
    ])

    paragraphs = ParagraphLoader().load_file(path)

    assert [p.id for p in paragraphs] == [4]


def test_duplicate_numbers_keep_first_occurrence(tmp_path):
    path = _write(tmp_path, [
        {"id": 7, "text": "original"},
        {"id": 7, "text": "duplicate"},
    ])

    paragraphs = ParagraphLoader().load_file(path)

    assert len(paragraphs) == 1
    assert paragraphs[0].text == "original"


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ParagraphLoader().load_file(tmp_path / "missing.json")


def test_non_array_file_raises(tmp_path):
    path = tmp_path / "object.json"
    path.write_text(json.dumps({"id": 1, "text": "x"}), encoding="utf-8")

    with pytest.raises(ValueError, match="JSON array"):
        ParagraphLoader().load_file(path)
