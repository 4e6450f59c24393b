# toolrag

Building blocks for LLM agents that call tools and retrieve context. The
package needs nothing beyond the standard library.

- `toolrag.tool`: tools, tool sets and a builder for them.
- `toolrag.vector_store`: `Embedding` with cosine similarity, the
  `EmbeddingModel` and `VectorStoreIndex` interfaces, and `prune_document`.
- `toolrag.in_memory_store`: `InMemoryVectorStore` and `InMemoryVectorIndex`.
- `toolrag.providers.base`: `Message`, `ModelChoice`, `CompletionResponse`,
  the `CompletionError` family and `merge`.
- `toolrag.providers.anthropic`, `toolrag.providers.xai`,
  `toolrag.providers.gemini` (with `toolrag.providers.gemini_types`): request
  bodies for, and parsing of responses from, these providers.

## Installation

```
pip install .
```

## Tools

Subclass `Tool`, set the class attribute `name`, and implement the async
methods `definition(prompt)` and `call(args)`. `call` receives the decoded JSON
arguments and returns a JSON-serialisable value.

```python
import asyncio
from toolrag.tool import Tool, ToolDefinition, ToolSet

class Adder(Tool):
    name = "add"

    async def definition(self, prompt):
        return ToolDefinition(
            name="add",
            description="Add x and y together",
            parameters={
                "type": "object",
                "properties": {
                    "x": {"type": "number"},
                    "y": {"type": "number"},
                },
            },
        )

    async def call(self, args):
        return args["x"] + args["y"]

toolset = ToolSet.from_tools([Adder()])
print(asyncio.run(toolset.call("add", '{"x": 1, "y": 2}')))  # 3
```

`Tool.call_json(args)` takes and returns JSON text; invalid JSON or a failing
tool raises `ToolError`. Through `ToolSet.call`, such failures are raised as
`ToolSetError`, and an unknown tool name raises `ToolNotFoundError` (a
`ToolSetError`).

A `ToolSet` supports `contains`, `in`, `len()`, iteration over tool names,
`get`, `add_tool`, `add_tools` (merging another set, its tools winning on name
clashes) and `documents()`, which returns one `Document` per tool holding its
pretty-printed definition.

`ToolEmbedding` extends `Tool` with `embedding_docs()`, `context()`,
`context_value()` and the class method `init(state, context)`. Use
`ToolSet.builder()` to add tools with `static_tool` or, for retrievable tools,
`dynamic_tool`, then `build()`; `ToolSet.embedding_tools()` yields the tools
added with `dynamic_tool`.

## In-memory vector store

```python
from toolrag.in_memory_store import InMemoryVectorStore
from toolrag.vector_store import Embedding

store = InMemoryVectorStore.from_documents_with_ids([
    ("doc1", "glarb-garb", [Embedding("glarb-garb", [0.1, 0.1, 0.5])]),
    ("doc2", "marble-marble", [Embedding("marble-marble", [0.7, -0.3, 0.0])]),
])

for item in store.vector_search(Embedding("query", [0.0, 0.1, 0.6]), 1):
    print(item.score, item.id, item.document)
```

Each document scores the best cosine similarity among its embeddings;
`vector_search` returns the `n` best `RankingItem`s, best first. Documents can
also be added with generated ids (`from_documents`, `add_documents`, giving
`doc0`, `doc1`, ...) or ids computed by a function (`from_documents_with_id_f`,
`add_documents_with_id_f`). `get_document(id)` returns the document as a plain
JSON value, or `None`.

`store.index(model)` wraps the store in an `InMemoryVectorIndex`, which embeds
the query with an `EmbeddingModel` you supply and offers the async methods
`top_n`, `top_n_ids` and `top_n_pruned`. The last passes each document through
`prune_document`, which drops arrays of more than 400 items.

## Providers

Each provider module builds JSON request bodies and parses the decoded JSON
replies into a `CompletionResponse`, whose `choice` is a `ModelChoice`: either
a text message (`text`) or a tool call (`tool_name`, `tool_args`).

```python
from toolrag.providers.anthropic import CompletionModel

model = CompletionModel("claude-3-5-sonnet-latest")
body = model.build_request("Hello", preamble="Be brief.")
```

- Anthropic: `CompletionModel.build_request` requires `max_tokens` unless the
  model name gives a default (`calculate_max_tokens`), else it raises
  `RequestError`. `parse_response` raises `ProviderError` for an error body.
- xAI: `CompletionModel` and `EmbeddingModel(model, ndims)`, each with
  `build_request` and `parse_response`.
- Gemini: `CompletionModel` and `EmbeddingModel(model, dimensions)`, each with
  `build_request`, `request_path` and `parse_response`. Tool parameter schemas
  are not passed on in Gemini requests.

## What the package does not do

It sends no HTTP requests and holds no API clients: post the bodies with a
client of your choice and hand the decoded replies to `parse_response`. The
provider embedding models are not `EmbeddingModel` implementations, so
`InMemoryVectorIndex` needs an embedding model that you write. There is no
agent loop and no command-line program.

## Running the tests

```
pip install .[test]
pytest
```