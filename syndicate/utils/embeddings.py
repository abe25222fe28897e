from __future__ import annotations

from typing import Any, List

import structlog
from openai import AsyncOpenAI

from syndicate.errors import NoChoicesError, RequestValidationError, TransportError

logger = structlog.get_logger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-large"


class Embedder:
    """Generates embedding vectors through the OpenAI embeddings endpoint."""

    def __init__(
        self,
        client: Any | None = None,
        model: str = DEFAULT_EMBEDDING_MODEL,
        api_key: str | None = None,
    ) -> None:
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model

    async def embed(self, text: str, model: str | None = None) -> List[float]:
        if not text:
            raise RequestValidationError("input data cannot be empty")

        model_name = model or self.model
        try:
            res = await self.client.embeddings.create(input=[text], model=model_name)
        except Exception as exc:
            logger.error("embedding_failed", model=model_name, error=str(exc))
            raise TransportError(f"create embeddings error: {exc}") from exc

        if not res.data:
            raise NoChoicesError("no embedding data returned")
        return list(res.data[0].embedding)
