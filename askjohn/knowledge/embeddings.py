"""Embedding providers.

One provider instance is bound to one model id and shared by the indexer
and the retriever, so document chunks and queries always land in the
same embedding space.
"""

import asyncio
from abc import ABC, abstractmethod

from askjohn.config.constants import KB
from askjohn.config.settings import Settings
from askjohn.exceptions import EmbeddingError, InvalidConfigError
from askjohn.observability.logging import get_logger

logger = get_logger(__name__)


class EmbeddingProvider(ABC):
    """Abstract base for embedding providers."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model id used for every call."""
        ...

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate embedding for text.

        Raises:
            EmbeddingError: If the provider fails or returns no vector
        """
        ...

    async def close(self) -> None:
        """Release provider resources."""
        return None


class OpenAIEmbeddings(EmbeddingProvider):
    """OpenAI embeddings provider."""

    def __init__(
        self,
        model: str = KB.EMBEDDING_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
    ):
        self._model = model
        self._api_key = api_key
        self._base_url = base_url
        self._client = None

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    async def embed(self, text: str) -> list[float]:
        client = self._get_client()
        try:
            response = await client.embeddings.create(
                input=text,
                model=self._model,
            )
        except Exception as e:
            raise EmbeddingError(str(e), model=self._model) from e

        if not response.data or not response.data[0].embedding:
            raise EmbeddingError("provider returned an empty vector", model=self._model)
        return list(response.data[0].embedding)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class LocalEmbeddings(EmbeddingProvider):
    """Local embeddings using sentence-transformers."""

    def __init__(self, model_name: str = KB.LOCAL_EMBEDDING_MODEL):
        self._model_name = model_name
        self._encoder = None

    @property
    def model(self) -> str:
        return self._model_name

    def _get_encoder(self):
        if self._encoder is None:
            from sentence_transformers import SentenceTransformer
            self._encoder = SentenceTransformer(self._model_name)
        return self._encoder

    async def embed(self, text: str) -> list[float]:
        try:
            encoder = self._get_encoder()
            # Run in executor to not block event loop
            loop = asyncio.get_running_loop()
            embedding = await loop.run_in_executor(
                None, lambda: encoder.encode(text).tolist()
            )
        except Exception as e:
            raise EmbeddingError(str(e), model=self._model_name) from e

        if not embedding:
            raise EmbeddingError("encoder returned an empty vector", model=self._model_name)
        return embedding


def create_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Build the embedding provider selected in settings.

    Raises:
        InvalidConfigError: If the provider name is unknown
    """
    if settings.embedding_provider == "openai":
        logger.info("Using OpenAI embeddings", model=settings.embedding_model)
        return OpenAIEmbeddings(
            model=settings.embedding_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
    if settings.embedding_provider == "local":
        logger.info("Using local sentence-transformers embeddings", model=settings.embedding_model)
        return LocalEmbeddings(model_name=settings.embedding_model)

    raise InvalidConfigError(
        "embedding_provider",
        settings.embedding_provider,
        "expected 'openai' or 'local'",
    )
