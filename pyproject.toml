[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "toolrag"
version = "0.1.0"
description = "Tool sets, in-memory vector search and LLM provider request/response mapping for agents"
requires-python = ">=3.10"
dependencies = []
keywords = ["llm", "tools", "rag", "embeddings", "vector-store", "agents"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["toolrag"]

[tool.pytest.ini_options]
addopts = "-ra"
