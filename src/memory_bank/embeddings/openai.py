"""Embeddings from the OpenAI embeddings endpoint."""

from typing import Any

from memory_bank.embeddings.base import EmbeddingProvider


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Calls `embeddings.create` with a fixed output size.

    text-embedding-3 models share one space for queries and passages, so
    `is_query` has no effect here.
    """

    def __init__(
        self, api_key: str, model: str = "text-embedding-3-small", dimensions: int = 1536
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._dimensions = dimensions
        self._client: Any | None = None

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as e:
                raise ImportError(
                    'openai is not installed. Install with: pip install "memory-bank[openai]"'
                ) from e
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def _request(self, texts: list[str]) -> list[list[float]]:
        response = await self.client.embeddings.create(
            input=texts, model=self.model, dimensions=self._dimensions
        )
        # the API does not promise response order
        ordered = sorted(response.data, key=lambda d: d.index)
        return [d.embedding for d in ordered]

    async def embed(self, text: str, *, is_query: bool = False) -> list[float]:
        if not text.strip():
            raise ValueError("Text cannot be empty")
        [vector] = await self._request([text])
        return vector

    async def embed_batch(
        self, texts: list[str], *, is_query: bool = False
    ) -> list[list[float]]:
        """Embed all texts in one request."""
        if not texts:
            raise ValueError("Texts list cannot be empty")
        return await self._request(texts)

    def dimensions(self) -> int:
        return self._dimensions
