"""Embeddings, embedding models and the vector store index interface."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable

MAX_ARRAY_LEN = 400

_DROPPED = object()


class EmbeddingError(Exception):
    """An embedding model failed to produce embeddings."""


class VectorStoreError(Exception):
    """A vector store operation failed."""


@dataclass
class Embedding:
    """A document and its embedding vector."""

    document: str
    vec: list[float] = field(default_factory=list)

    def cosine_similarity(self, other: Embedding, normalized: bool) -> float:
        """Cosine similarity; with ``normalized`` the vectors are taken as unit length."""
        dot = sum(a * b for a, b in zip(self.vec, other.vec))
        if normalized:
            return dot
        mag_self = math.sqrt(sum(a * a for a in self.vec))
        mag_other = math.sqrt(sum(b * b for b in other.vec))
        return dot / (mag_self * mag_other)


class EmbeddingModel(ABC):
    """A model that turns texts into embeddings."""

    MAX_DOCUMENTS: ClassVar[int]

    @abstractmethod
    def ndims(self) -> int:
        """Number of dimensions of the produced vectors."""

    @abstractmethod
    async def embed_texts(self, documents: Iterable[str]) -> list[Embedding]:
        """Embed several texts, in order."""

    async def embed_text(self, text: str) -> Embedding:
        """Embed a single text."""
        embeddings = await self.embed_texts([text])
        if not embeddings:
            raise EmbeddingError("model returned no embedding")
        return embeddings[0]


class VectorStoreIndex(ABC):
    """An index that ranks stored documents against a query."""

    @abstractmethod
    async def top_n(self, query: str, n: int) -> list[tuple[float, str, Any]]:
        """The n best documents as (score, id, document)."""

    @abstractmethod
    async def top_n_ids(self, query: str, n: int) -> list[tuple[float, str]]:
        """The n best documents as (score, id)."""

    async def top_n_pruned(self, query: str, n: int) -> list[tuple[float, str, Any]]:
        """Like top_n, with oversized arrays removed from each document."""
        return [
            (score, doc_id, prune_document(doc))
            for score, doc_id, doc in await self.top_n(query, n)
        ]


def _prune(value: Any) -> Any:
    if isinstance(value, dict):
        pruned = {}
        for key, item in value.items():
            kept = _prune(item)
            if kept is not _DROPPED:
                pruned[key] = kept
        return pruned
    if isinstance(value, list):
        if len(value) > MAX_ARRAY_LEN:
            return _DROPPED
        return [kept for kept in map(_prune, value) if kept is not _DROPPED]
    return value


def prune_document(document: Any) -> Any:
    """Drop arrays longer than 400 items anywhere in a JSON value; None if the whole value is one."""
    pruned = _prune(document)
    return None if pruned is _DROPPED else pruned