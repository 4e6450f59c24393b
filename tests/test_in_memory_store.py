from typing import Iterable

import pytest

from toolrag.in_memory_store import InMemoryVectorIndex, InMemoryVectorStore, RankingItem
from toolrag.vector_store import Embedding, EmbeddingError, EmbeddingModel, VectorStoreError

QUERY = Embedding(document="glarby-glarble", vec=[0.0, 0.1, 0.6])
EXPECTED_SCORE = 0.9807965956109156


class FixedModel(EmbeddingModel):
    MAX_DOCUMENTS = 16

    def __init__(self, vectors: dict[str, list[float]]) -> None:
        self.vectors = vectors

    def ndims(self) -> int:
        return 3

    async def embed_texts(self, documents: Iterable[str]) -> list[Embedding]:
        return [Embedding(document=d, vec=self.vectors[d]) for d in documents]


class FailingModel(FixedModel):
    async def embed_texts(self, documents: Iterable[str]) -> list[Embedding]:
        raise EmbeddingError("boom")


def _three_store() -> InMemoryVectorStore:
    return InMemoryVectorStore.from_documents_with_ids(
        [
            ("doc1", "glarb-garb", [Embedding("glarb-garb", [0.1, 0.1, 0.5])]),
            ("doc2", "marble-marble", [Embedding("marble-marble", [0.7, -0.3, 0.0])]),
            ("doc3", "flumb-flumb", [Embedding("flumb-flumb", [0.3, 0.7, 0.1])]),
        ]
    )


def test_auto_ids():
    store = InMemoryVectorStore.from_documents(
        [
            ("glarb-garb", [Embedding("glarb-garb", [0.1, 0.1, 0.5])]),
            ("marble-marble", [Embedding("marble-marble", [0.7, -0.3, 0.0])]),
            ("flumb-flumb", [Embedding("flumb-flumb", [0.3, 0.7, 0.1])]),
        ]
    )
    store.add_documents(
        [
            ("brotato", [Embedding("brotato", [0.3, 0.7, 0.1])]),
            ("ping-pong", [Embedding("ping-pong", [0.7, -0.3, 0.0])]),
        ]
    )
    assert sorted(store.items()) == [
        ("doc0", ("glarb-garb", [Embedding("glarb-garb", [0.1, 0.1, 0.5])])),
        ("doc1", ("marble-marble", [Embedding("marble-marble", [0.7, -0.3, 0.0])])),
        ("doc2", ("flumb-flumb", [Embedding("flumb-flumb", [0.3, 0.7, 0.1])])),
        ("doc3", ("brotato", [Embedding("brotato", [0.3, 0.7, 0.1])])),
        ("doc4", ("ping-pong", [Embedding("ping-pong", [0.7, -0.3, 0.0])])),
    ]


def test_single_embedding():
    ranking = _three_store().vector_search(QUERY, 1)
    assert [(r.score, r.id, r.document) for r in ranking] == [
        (pytest.approx(EXPECTED_SCORE, abs=1e-12), "doc1", "glarb-garb")
    ]


def test_multiple_embeddings():
    store = InMemoryVectorStore.from_documents_with_ids(
        [
            (
                "doc1",
                "glarb-garb",
                [
                    Embedding("glarb-garb", [0.1, 0.1, 0.5]),
                    Embedding("don't-choose-me", [-0.5, 0.9, 0.1]),
                ],
            ),
            (
                "doc2",
                "marble-marble",
                [
                    Embedding("marble-marble", [0.7, -0.3, 0.0]),
                    Embedding("sandwich", [0.5, 0.5, -0.7]),
                ],
            ),
            (
                "doc3",
                "flumb-flumb",
                [
                    Embedding("flumb-flumb", [0.3, 0.7, 0.1]),
                    Embedding("banana", [0.1, -0.5, -0.5]),
                ],
            ),
        ]
    )
    ranking = store.vector_search(QUERY, 1)
    assert [(r.score, r.id, r.document, r.embedded_document) for r in ranking] == [
        (pytest.approx(EXPECTED_SCORE, abs=1e-12), "doc1", "glarb-garb", "glarb-garb")
    ]


def test_vector_search_orders_best_first():
    ranking = _three_store().vector_search(QUERY, 10)
    assert len(ranking) == 3
    assert ranking[0].id == "doc1"
    scores = [r.score for r in ranking]
    assert scores == sorted(scores, reverse=True)


def test_vector_search_zero_returns_nothing():
    assert _three_store().vector_search(QUERY, 0) == []


def test_document_without_embeddings_is_skipped():
    store = InMemoryVectorStore.from_documents_with_ids([("empty", "x", [])])
    assert store.vector_search(QUERY, 5) == []


def test_ranking_item_orders_by_score():
    low = RankingItem(0.1, "b", "doc", "text")
    high = RankingItem(0.9, "a", "doc", "text")
    assert low < high
    assert max([low, high]).id == "a"


def test_from_documents_with_id_f():
    store = InMemoryVectorStore.from_documents_with_id_f(
        [({"name": "alpha"}, [Embedding("alpha", [1.0, 0.0])])],
        lambda d: d["name"],
    )
    assert store.get_document("alpha") == {"name": "alpha"}
    store.add_documents_with_id_f([({"name": "beta"}, [Embedding("beta", [0.0, 1.0])])], lambda d: d["name"])
    assert len(store) == 2


def test_add_documents_with_ids_stringifies():
    store = InMemoryVectorStore()
    store.add_documents_with_ids([(7, "seven", [Embedding("seven", [1.0])])])
    assert store.get_document("7") == "seven"


def test_get_document_missing_and_round_trip():
    store = InMemoryVectorStore.from_documents_with_ids(
        [("d", ("a", 1), [Embedding("a", [1.0])])]
    )
    assert store.get_document("missing") is None
    assert store.get_document("d") == ["a", 1]


def test_get_document_unserialisable_raises():
    store = InMemoryVectorStore.from_documents_with_ids([("d", object(), [Embedding("a", [1.0])])])
    with pytest.raises(VectorStoreError):
        store.get_document("d")


def test_len_and_iter():
    store = _three_store()
    assert len(store) == 3
    assert sorted(doc_id for doc_id, _ in store) == ["doc1", "doc2", "doc3"]
    assert len(InMemoryVectorStore()) == 0


@pytest.mark.asyncio
async def test_index_top_n():
    model = FixedModel({"query": [0.0, 0.1, 0.6]})
    index = _three_store().index(model)
    assert isinstance(index, InMemoryVectorIndex)
    assert len(index) == 3
    result = await index.top_n("query", 1)
    assert result == [(pytest.approx(EXPECTED_SCORE, abs=1e-12), "doc1", "glarb-garb")]


@pytest.mark.asyncio
async def test_index_top_n_ids():
    index = _three_store().index(FixedModel({"query": [0.0, 0.1, 0.6]}))
    result = await index.top_n_ids("query", 2)
    assert len(result) == 2
    assert result[0][1] == "doc1"
    assert result[0][0] >= result[1][0]


@pytest.mark.asyncio
async def test_index_top_n_pruned_drops_long_arrays():
    store = InMemoryVectorStore.from_documents_with_ids(
        [("d", {"big": list(range(401)), "k": 1}, [Embedding("d", [0.0, 0.1, 0.6])])]
    )
    index = store.index(FixedModel({"q": [0.0, 0.1, 0.6]}))
    result = await index.top_n_pruned("q", 1)
    assert result[0][1] == "d"
    assert result[0][2] == {"k": 1}


@pytest.mark.asyncio
async def test_index_embedding_error_becomes_vector_store_error():
    index = _three_store().index(FailingModel({}))
    with pytest.raises(VectorStoreError):
        await index.top_n_ids("query", 1)