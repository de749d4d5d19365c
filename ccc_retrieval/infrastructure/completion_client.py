# ccc_retrieval/infrastructure/completion_client.py
import logging
from typing import Any, Dict, Optional
import httpx

from ccc_retrieval.domain.errors import RewriteFailed
from ccc_retrieval.domain.interfaces import CompletionPort
from ccc_retrieval.util.timing import timed

logger = logging.getLogger(__name__)


class OpenAICompletionClient(CompletionPort):
    """
    Single-turn chat completion against an OpenAI-compatible API.
    Raises RewriteFailed for transport errors, non-2xx responses and
    responses without message content. No retries.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 10.0,
        max_tokens: int = 120,
        client: Optional[httpx.Client] = None,
    ):
        self._model = model
        self._max_tokens = max_tokens
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": 0.0,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        with timed(logger, "ai.complete", model=self._model):
            data = self._post_json("/chat/completions", payload)

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as error:
            raise RewriteFailed(f"Malformed completion response: {error}") from error

    def close(self) -> None:
        self._client.close()

    def _post_json(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = self._client.post(path, json=payload)
            r.raise_for_status()
            return r.json()
        except httpx.HTTPStatusError as error:
            logger.error("ai.bad_status %d", error.response.status_code)
            raise RewriteFailed(
                f"Completion provider returned {error.response.status_code}"
            ) from error
        except httpx.HTTPError as error:
            logger.error("ai.request_error err=%s", error)
            raise RewriteFailed(f"Completion request failed: {error}") from error
        except ValueError as error:
            raise RewriteFailed(f"Completion response was not JSON: {error}") from error
