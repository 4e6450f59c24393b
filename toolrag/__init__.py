"""Tool sets, in-memory vector search and provider request/response mapping for LLM agents."""

__version__ = "0.1.0"