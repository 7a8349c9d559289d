"""sentence-transformers embedding provider."""

import asyncio
import logging
from typing import Any

from memory_bank.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)

# Asymmetric models trained with "query: " / "passage: " prefixes
E5_MODEL_PATTERNS = ("e5-small", "e5-base", "e5-large", "e5-mistral")


class LocalEmbeddingProvider(EmbeddingProvider):
    """Embeds item and summary texts with a local sentence-transformers model.

    The model is loaded on first use. Vectors are L2-normalized so the
    cosine distances computed by the vector index stay in [0, 2].
    """

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        expected_dimensions: int | None = None,
        device: str | None = None,
    ) -> None:
        """Initialize local embedding provider.

        Args:
            model_name: sentence-transformers model name or path
            expected_dimensions: Vector size the index was created with
            device: Torch device ("cpu", "cuda", ...), auto-detected if None
        """
        self.model_name = model_name
        self.expected_dimensions = expected_dimensions
        self.device = device
        self._model: Any | None = None
        self._load_lock = asyncio.Lock()
        self._uses_prefixes = any(p in model_name.lower() for p in E5_MODEL_PATTERNS)

    def _add_prefix(self, text: str, is_query: bool) -> str:
        if not self._uses_prefixes:
            return text
        return ("query: " if is_query else "passage: ") + text

    def _load(self) -> Any:
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ImportError(
                "sentence-transformers is not installed. "
                'Install with: pip install "memory-bank[local]"'
            ) from e

        model = SentenceTransformer(self.model_name, device=self.device)
        size = model.get_sentence_embedding_dimension()
        if self.expected_dimensions is not None and size != self.expected_dimensions:
            raise ValueError(
                f"Model {self.model_name} produces {size}-dimensional vectors, "
                f"but the index expects {self.expected_dimensions}"
            )
        logger.info("Loaded embedding model %s (%d dimensions)", self.model_name, size)
        return model

    async def _get_model(self) -> Any:
        async with self._load_lock:
            if self._model is None:
                self._model = await asyncio.to_thread(self._load)
        return self._model

    async def _encode(self, texts: list[str], is_query: bool) -> list[list[float]]:
        model = await self._get_model()
        prepared = [self._add_prefix(t, is_query) for t in texts]
        # CPU bound; keep it off the event loop
        vectors = await asyncio.to_thread(
            model.encode,
            prepared,
            convert_to_numpy=True,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return [v.tolist() for v in vectors]

    async def embed(self, text: str, *, is_query: bool = False) -> list[float]:
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        [vector] = await self._encode([text], is_query)
        return vector

    async def embed_batch(
        self, texts: list[str], *, is_query: bool = False
    ) -> list[list[float]]:
        if not texts:
            raise ValueError("Texts list cannot be empty")
        return await self._encode(texts, is_query)

    def dimensions(self) -> int:
        """Vector size of the model.

        Uses the configured size when given, so the model is not loaded
        just to answer this.
        """
        if self.expected_dimensions is not None:
            return self.expected_dimensions
        if self._model is None:
            self._model = self._load()
        return self._model.get_sentence_embedding_dimension()
