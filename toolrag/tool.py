"""Tools a model can call, and sets of such tools keyed by name."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Iterator

logger = logging.getLogger("toolrag")


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class ToolError(Exception):
    """A tool call failed, or its arguments or output were not valid JSON."""


class ToolSetError(Exception):
    """A call through a tool set failed."""


class ToolNotFoundError(ToolSetError):
    """No tool with the requested name is in the set."""

    def __init__(self, toolname: str) -> None:
        super().__init__(f"ToolNotFoundError: {toolname}")
        self.toolname = toolname


@dataclass
class ToolDefinition:
    """Name, description and JSON parameter schema of a tool."""

    name: str
    description: str
    parameters: Any = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


@dataclass
class Document:
    """A piece of text handed to a model as context."""

    id: str
    text: str
    additional_props: dict[str, str] = field(default_factory=dict)


class Tool(ABC):
    """A tool a model can call. Subclasses set ``name``, which should be unique."""

    name: ClassVar[str]

    @abstractmethod
    async def definition(self, prompt: str) -> ToolDefinition:
        """Return the tool's definition, possibly tailored to the user prompt."""

    @abstractmethod
    async def call(self, args: Any) -> Any:
        """Run the tool with decoded JSON arguments and return a JSON-serialisable result."""

    async def call_json(self, args: str) -> str:
        """Run the tool with JSON-encoded arguments and return its JSON-encoded result."""
        try:
            parsed = json.loads(args)
        except json.JSONDecodeError as exc:
            raise ToolError(f"JsonError: {exc}") from exc
        try:
            output = await self.call(parsed)
        except Exception as exc:
            raise ToolError(f"ToolCallError: {exc}") from exc
        try:
            return _compact_json(output)
        except (TypeError, ValueError) as exc:
            raise ToolError(f"JsonError: {exc}") from exc


class ToolEmbedding(Tool):
    """A tool that can be stored in a vector store and retrieved by similarity."""

    @abstractmethod
    def embedding_docs(self) -> list[str]:
        """Texts to embed for this tool; empty if it is never retrieved."""

    @abstractmethod
    def context(self) -> Any:
        """The tool's serialisable static configuration."""

    def context_value(self) -> Any:
        """The context as a plain JSON value."""
        try:
            return json.loads(_compact_json(self.context()))
        except (TypeError, ValueError) as exc:
            raise ToolError(f"JsonError: {exc}") from exc

    @classmethod
    @abstractmethod
    def init(cls, state: Any, context: Any) -> ToolEmbedding:
        """Rebuild the tool from runtime state and a stored context."""


@dataclass
class _Entry:
    tool: Tool
    dynamic: bool


class ToolSet:
    """A collection of tools keyed by name."""

    def __init__(self) -> None:
        self._tools: dict[str, _Entry] = {}

    @classmethod
    def from_tools(cls, tools: Iterable[Tool]) -> ToolSet:
        toolset = cls()
        for tool in tools:
            toolset.add_tool(tool)
        return toolset

    @classmethod
    def builder(cls) -> ToolSetBuilder:
        return ToolSetBuilder()

    def contains(self, toolname: str) -> bool:
        return toolname in self._tools

    def __contains__(self, toolname: object) -> bool:
        return toolname in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def add_tool(self, tool: Tool) -> None:
        self._tools[tool.name] = _Entry(tool, dynamic=False)

    def add_tools(self, toolset: ToolSet) -> None:
        """Merge another tool set into this one; its tools win on name clashes."""
        self._tools.update(toolset._tools)

    def get(self, toolname: str) -> Tool | None:
        entry = self._tools.get(toolname)
        return entry.tool if entry is not None else None

    def embedding_tools(self) -> Iterator[ToolEmbedding]:
        """Tools that were added as retrievable tools."""
        for entry in self._tools.values():
            if entry.dynamic and isinstance(entry.tool, ToolEmbedding):
                yield entry.tool

    async def call(self, toolname: str, args: str) -> str:
        """Call the named tool with JSON arguments and return its JSON result."""
        entry = self._tools.get(toolname)
        if entry is None:
            raise ToolNotFoundError(toolname)
        logger.info("Calling tool %s with args:\n%s", toolname, json.dumps(args))
        try:
            return await entry.tool.call_json(args)
        except ToolError as exc:
            raise ToolSetError(f"ToolCallError: {exc}") from exc

    async def documents(self) -> list[Document]:
        """One document per tool, describing its definition."""
        docs = []
        for entry in self._tools.values():
            tool = entry.tool
            definition = await tool.definition("")
            try:
                rendered = json.dumps(definition.to_dict(), indent=2, ensure_ascii=False)
            except (TypeError, ValueError) as exc:
                raise ToolSetError(f"JsonError: {exc}") from exc
            docs.append(
                Document(
                    id=tool.name,
                    text=f"Tool: {tool.name}\nDefinition: \n{rendered}",
                )
            )
        return docs


class ToolSetBuilder:
    """Collects static and retrievable tools and builds a ToolSet."""

    def __init__(self) -> None:
        self._entries: list[_Entry] = []

    def static_tool(self, tool: Tool) -> ToolSetBuilder:
        self._entries.append(_Entry(tool, dynamic=False))
        return self

    def dynamic_tool(self, tool: ToolEmbedding) -> ToolSetBuilder:
        self._entries.append(_Entry(tool, dynamic=True))
        return self

    def build(self) -> ToolSet:
        toolset = ToolSet()
        toolset._tools = {entry.tool.name: entry for entry in self._entries}
        return toolset