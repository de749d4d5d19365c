# ccc_retrieval/util/timing.py
import logging
import time
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def timed(logger: logging.Logger, stage: str, **fields) -> Iterator[None]:
    """
    Log the wall-clock duration of one pipeline stage:

        with timed(logger, "search.vector", threshold=0.3):
            ...

    logs "search.vector.done ms=12 threshold=0.3", or "search.vector.failed"
    at WARNING when the block raises. The exception propagates.
    """
    started = time.perf_counter()
    outcome, level = "done", logging.INFO
    try:
        yield
    except BaseException:
        outcome, level = "failed", logging.WARNING
        raise
    finally:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        pairs = [f"ms={elapsed_ms}"] + [f"{key}={value}" for key, value in fields.items()]
        logger.log(level, "%s.%s %s", stage, outcome, " ".join(pairs))
