"""A vector store that keeps documents and their embeddings in memory."""

from __future__ import annotations

import heapq
import itertools
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

from toolrag.vector_store import (
    Embedding,
    EmbeddingError,
    EmbeddingModel,
    VectorStoreError,
    VectorStoreIndex,
)

logger = logging.getLogger("toolrag")

D = TypeVar("D")


def _json_round_trip(document: Any) -> Any:
    try:
        return json.loads(json.dumps(document))
    except (TypeError, ValueError) as exc:
        raise VectorStoreError(f"Json error: {exc}") from exc


@dataclass(order=True)
class RankingItem(Generic[D]):
    """A ranked document: its best similarity, id, document and the embedded text that matched."""

    score: float
    id: str = field(compare=False)
    document: D = field(compare=False)
    embedded_document: str = field(compare=False)


class InMemoryVectorStore(Generic[D]):
    """Documents and their embeddings, keyed by document id."""

    def __init__(self, embeddings: dict[str, tuple[D, list[Embedding]]] | None = None) -> None:
        self._embeddings: dict[str, tuple[D, list[Embedding]]] = dict(embeddings or {})

    @classmethod
    def from_documents(
        cls, documents: Iterable[tuple[D, list[Embedding]]]
    ) -> InMemoryVectorStore[D]:
        """Build a store whose ids are ``doc0``, ``doc1``, ... in input order."""
        store = cls()
        store.add_documents(documents)
        return store

    @classmethod
    def from_documents_with_ids(
        cls, documents: Iterable[tuple[Any, D, list[Embedding]]]
    ) -> InMemoryVectorStore[D]:
        """Build a store from (id, document, embeddings) triples."""
        store = cls()
        store.add_documents_with_ids(documents)
        return store

    @classmethod
    def from_documents_with_id_f(
        cls,
        documents: Iterable[tuple[D, list[Embedding]]],
        f: Callable[[D], str],
    ) -> InMemoryVectorStore[D]:
        """Build a store whose ids are computed from each document by ``f``."""
        store = cls()
        store.add_documents_with_id_f(documents, f)
        return store

    def vector_search(self, prompt_embedding: Embedding, n: int) -> list[RankingItem[D]]:
        """The n documents most similar to the prompt, best first.

        Each document scores the best similarity among its embeddings; documents
        without embeddings are skipped.
        """
        heap: list[tuple[float, int, RankingItem[D]]] = []
        counter = itertools.count()
        for doc_id, (doc, embeddings) in self._embeddings.items():
            scored = [
                (embedding.cosine_similarity(prompt_embedding, False), embedding.document)
                for embedding in embeddings
            ]
            if scored:
                score, embedded = max(scored, key=lambda pair: pair[0])
                item = RankingItem(score, doc_id, doc, embedded)
                heapq.heappush(heap, (score, next(counter), item))
            if len(heap) > n:
                heapq.heappop(heap)

        ranking = [item for _, _, item in sorted(heap, key=lambda e: (-e[0], e[1]))]
        logger.info(
            "Selected documents: %s",
            ", ".join(f"{item.id} ({item.score})" for item in ranking),
        )
        return ranking

    def add_documents(self, documents: Iterable[tuple[D, list[Embedding]]]) -> None:
        """Add documents with ids ``doc{n}``, counting on from the current size."""
        start = len(self._embeddings)
        for index, (doc, embeddings) in enumerate(documents, start=start):
            self._embeddings[f"doc{index}"] = (doc, list(embeddings))

    def add_documents_with_ids(
        self, documents: Iterable[tuple[Any, D, list[Embedding]]]
    ) -> None:
        """Add (id, document, embeddings) triples; ids are converted to strings."""
        for doc_id, doc, embeddings in documents:
            self._embeddings[str(doc_id)] = (doc, list(embeddings))

    def add_documents_with_id_f(
        self,
        documents: Iterable[tuple[D, list[Embedding]]],
        f: Callable[[D], str],
    ) -> None:
        """Add documents whose ids are computed by ``f``."""
        for doc, embeddings in documents:
            self._embeddings[f(doc)] = (doc, list(embeddings))

    def get_document(self, id: str) -> Any:
        """The document with this id as a plain JSON value, or None if absent."""
        entry = self._embeddings.get(id)
        if entry is None:
            return None
        return _json_round_trip(entry[0])

    def index(self, model: EmbeddingModel) -> InMemoryVectorIndex[D]:
        """An index over this store that embeds queries with ``model``."""
        return InMemoryVectorIndex(model, self)

    def items(self) -> Iterator[tuple[str, tuple[D, list[Embedding]]]]:
        return iter(self._embeddings.items())

    def __iter__(self) -> Iterator[tuple[str, tuple[D, list[Embedding]]]]:
        return self.items()

    def __len__(self) -> int:
        return len(self._embeddings)


class InMemoryVectorIndex(VectorStoreIndex, Generic[D]):
    """Searches an in-memory store using an embedding model for queries."""

    def __init__(self, model: EmbeddingModel, store: InMemoryVectorStore[D]) -> None:
        self.model = model
        self.store = store

    async def _search(self, query: str, n: int) -> list[RankingItem[D]]:
        try:
            prompt_embedding = await self.model.embed_text(query)
        except EmbeddingError as exc:
            raise VectorStoreError(f"Embedding error: {exc}") from exc
        return self.store.vector_search(prompt_embedding, n)

    async def top_n(self, query: str, n: int) -> list[tuple[float, str, Any]]:
        return [
            (item.score, item.id, _json_round_trip(item.document))
            for item in await self._search(query, n)
        ]

    async def top_n_ids(self, query: str, n: int) -> list[tuple[float, str]]:
        return [(item.score, item.id) for item in await self._search(query, n)]

    def __iter__(self) -> Iterator[tuple[str, tuple[D, list[Embedding]]]]:
        return iter(self.store)

    def __len__(self) -> int:
        return len(self.store)