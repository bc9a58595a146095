[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quantumn"
version = "0.1.0"
description = "Local-first AI coding assistant toolkit: themes, mode prompts and chat providers for cloud and local LLMs"
requires-python = ">=3.11"
keywords = ["ai", "llm", "coding", "assistant", "ollama", "groq", "gemini", "llama.cpp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development",
]
dependencies = [
    "httpx",
    "platformdirs",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[tool.hatch.build.targets.wheel]
packages = ["quantumn"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
