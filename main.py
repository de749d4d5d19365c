# main.py

import sys

from ccc_retrieval.composition import build_container, ensure_index
from ccc_retrieval.config.settings import settings
from ccc_retrieval.domain.errors import (
    ConfigurationError,
    ParagraphNotFound,
    SearchFailed,
    StoreUnavailable,
)
from ccc_retrieval.interface.cli import (
    display_welcome_banner,
    display_indexing_status,
    prompt_for_query,
    display_results,
    display_paragraphs,
    display_error,
    ask_continue,
)
from ccc_retrieval.util.logger import init_logger


def main() -> None:
    init_logger()
    display_welcome_banner()

    # ── 1. Initialize infrastructure ─────────────────────────────────────────
    try:
        container = build_container(settings)
    except (ConfigurationError, StoreUnavailable) as error:
        display_error(str(error))
        sys.exit(1)

    # ── 2. Indexing decision ─────────────────────────────────────────────────
    try:
        ensure_index(container)
    except (FileNotFoundError, ValueError, StoreUnavailable) as error:
        display_error(str(error))
        sys.exit(1)

    display_indexing_status(container.store.paragraph_count())

    # ── 3. Interactive loop: references show paragraphs, the rest searches ───
    while True:
        text = prompt_for_query()
        try:
            spec = container.resolver.resolve(text)
            if spec is not None:
                display_paragraphs(container.resolver.fetch(spec))
            else:
                display_results(container.search_service.search(text))
        except (ValueError, ParagraphNotFound, SearchFailed, StoreUnavailable) as error:
            display_error(str(error))

        if not ask_continue():
            break


if __name__ == "__main__":
    main()
