# tests/test_timing.py

import logging

import pytest

from ccc_retrieval.util.timing import timed


logger = logging.getLogger("tests.timing")


def test_successful_stage_logs_done_with_fields(caplog):
    with caplog.at_level(logging.INFO, logger="tests.timing"):
        with timed(logger, "search.vector", threshold=0.3):
            pass

    record = caplog.records[-1]
    assert record.levelno == logging.INFO
    assert record.getMessage().startswith("search.vector.done ms=")
    assert record.getMessage().endswith("threshold=0.3")


def test_failing_stage_logs_failed_and_reraises(caplog):
    with caplog.at_level(logging.INFO, logger="tests.timing"):
        with pytest.raises(RuntimeError):
            with timed(logger, "search.embed"):
                raise RuntimeError("provider down")

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.getMessage().startswith("search.embed.failed ms=")
