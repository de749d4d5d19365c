# tests/test_cli.py

import pytest
from rich.console import Console

from ccc_retrieval.domain.models import Paragraph, Provenance, SearchOutcome, SearchResult
from ccc_retrieval.interface import cli


@pytest.fixture
def recorder(monkeypatch):
    console = Console(record=True, width=100)
    monkeypatch.setattr(cli, "console", console)
    return console


def test_results_show_paragraph_numbers_and_provenance(recorder):
    outcome = SearchOutcome(
        query="prayer",
        results=[SearchResult(paragraph_id=2559, text="Prayer is the raising...", score=1.5)],
        provenance=Provenance.HYBRID,
    )

    cli.display_results(outcome)

    output = recorder.export_text()
    assert "hybrid search" in output
    assert "2559" in output
    assert "1.5000" in output


def test_degraded_outcome_is_flagged(recorder):
    outcome = SearchOutcome(
        query="prayer",
        results=[SearchResult(paragraph_id=1, text="a", score=0.9)],
        provenance=Provenance.KEYWORD,
        degraded=True,
    )

    cli.display_results(outcome)

    assert "keyword matches only" in recorder.export_text()


def test_empty_outcome(recorder):
    cli.display_results(SearchOutcome(query="x", results=[], provenance=Provenance.SEMANTIC))
    assert "No results found." in recorder.export_text()


def test_paragraphs_are_titled_by_number(recorder):
    cli.display_paragraphs([Paragraph(id=283, text="The question about origins.")])
    assert "CCC 283" in recorder.export_text()


@pytest.mark.parametrize("score, color", [
    (1.2, "bright_green"),
    (0.7, "green"),
    (0.45, "yellow"),
    (0.31, "red"),
])
def test_score_colors(score, color):
    assert cli._score_to_color(score) == color
