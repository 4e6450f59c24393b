"""Types shared by the completion providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

R = TypeVar("R")


class CompletionError(Exception):
    """A completion request failed."""


class RequestError(CompletionError):
    """The request could not be built."""


class ResponseError(CompletionError):
    """The response did not have the expected shape."""


class ProviderError(CompletionError):
    """The provider reported an error."""


@dataclass
class Message:
    """One chat message."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ModelChoice:
    """What the model answered: either a text message or a tool call."""

    text: str | None = None
    tool_name: str | None = None
    tool_args: Any = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.tool_name is None):
            raise ValueError("a choice is either a message or a tool call")

    @classmethod
    def message(cls, text: str) -> ModelChoice:
        return cls(text=text)

    @classmethod
    def tool_call(cls, name: str, args: Any) -> ModelChoice:
        return cls(tool_name=name, tool_args=args)

    @property
    def is_tool_call(self) -> bool:
        return self.tool_name is not None


@dataclass
class CompletionResponse(Generic[R]):
    """The model's choice together with the provider's raw response."""

    choice: ModelChoice
    raw_response: R


def merge(left: Any, right: Any) -> Any:
    """Shallow-merge two JSON objects, right winning; otherwise return left."""
    if isinstance(left, dict) and isinstance(right, dict):
        return {**left, **right}
    return left