"""Knowledge module - markdown knowledge base with embedding retrieval."""

from askjohn.knowledge.base import (
    KnowledgeBase,
    format_context,
    get_knowledge_base,
    retrieve_relevant_context,
    set_knowledge_base,
)
from askjohn.knowledge.chunker import MarkdownChunker
from askjohn.knowledge.embeddings import (
    EmbeddingProvider,
    LocalEmbeddings,
    OpenAIEmbeddings,
    create_embedding_provider,
)
from askjohn.knowledge.indexer import KnowledgeIndexer
from askjohn.knowledge.models import Chunk, IndexReport, IndexState, ScoredChunk
from askjohn.knowledge.retriever import KnowledgeRetriever, dot_product, score_chunks
from askjohn.knowledge.store import ChunkStore

__all__ = [
    "Chunk",
    "ChunkStore",
    "EmbeddingProvider",
    "IndexReport",
    "IndexState",
    "KnowledgeBase",
    "KnowledgeIndexer",
    "KnowledgeRetriever",
    "LocalEmbeddings",
    "MarkdownChunker",
    "OpenAIEmbeddings",
    "ScoredChunk",
    "create_embedding_provider",
    "dot_product",
    "format_context",
    "get_knowledge_base",
    "retrieve_relevant_context",
    "score_chunks",
    "set_knowledge_base",
]
