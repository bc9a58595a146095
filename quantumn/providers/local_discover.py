"""Discover locally installed models from Ollama, LM Studio and llama.cpp."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from quantumn.providers.ollama_discovery import detect_models_comprehensive

logger = logging.getLogger(__name__)

KB = 1024
MB = KB * 1024
GB = MB * 1024

_U64_MAX = 2**64 - 1

LLAMA_CPP_SEARCH_PATHS: tuple[str, ...] = (
    "~/.llama.cpp/models",
    "~/models",
    "/usr/local/share/llama.cpp/models",
)


@dataclass
class LocalModel:
    """One discovered model, whatever runtime it belongs to."""

    provider: str
    name: str
    path: str
    size_bytes: int | None = None


@dataclass
class OllamaModelInfo:
    """An Ollama model with a human-readable size and date."""

    name: str
    size: str
    modified: str


@dataclass
class LmStudioModelInfo:
    path: Path
    size_bytes: int


@dataclass
class LlamaCppModelInfo:
    path: Path
    size_bytes: int


@dataclass
class LocalModelConfig:
    """All discovered models, keyed by name for each runtime."""

    ollama: dict[str, OllamaModelInfo] = field(default_factory=dict)
    lm_studio: dict[str, LmStudioModelInfo] = field(default_factory=dict)
    llama_cpp: dict[str, LlamaCppModelInfo] = field(default_factory=dict)
    last_discovery: str | None = None


def discover_all_models() -> LocalModelConfig:
    """Scan every supported runtime and stamp the result with the current time."""
    config = LocalModelConfig()
    _discover_ollama_models(config)
    _discover_lm_studio_models(config, os.environ.get("HOME", ""))
    _discover_llama_cpp_models(config, [_expand_tilde(p) for p in LLAMA_CPP_SEARCH_PATHS])
    config.last_discovery = datetime.now(timezone.utc).isoformat()
    return config


def _discover_ollama_models(config: LocalModelConfig) -> None:
    detected = detect_models_comprehensive()
    if detected.is_running:
        logger.info("Ollama server is running with %d models", len(detected.names))
    elif detected.names:
        logger.info(
            "Found %d locally installed Ollama models (server not running)",
            len(detected.names),
        )

    for name, detail in zip(detected.names, detected.details):
        config.ollama[name] = OllamaModelInfo(
            name=name,
            size=format_size(detail.size),
            modified=extract_date_from_iso(detail.modified_at),
        )


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def _entries(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir())
    except OSError:
        return []


def _discover_lm_studio_models(config: LocalModelConfig, home: str) -> None:
    """GGUF files one directory below ``<home>/.lmstudio/models``, keyed by stem."""
    models_dir = Path(f"{home}/.lmstudio/models")
    if not models_dir.exists():
        return
    for entry in _entries(models_dir):
        if not entry.is_dir():
            continue
        for sub_path in _entries(entry):
            if sub_path.suffix == ".gguf":
                config.lm_studio[sub_path.stem] = LmStudioModelInfo(
                    path=sub_path, size_bytes=_file_size(sub_path)
                )


def _discover_llama_cpp_models(config: LocalModelConfig, search_paths: list[Path]) -> None:
    """GGUF files directly inside each search path, keyed by file name."""
    for base in search_paths:
        if not base.exists():
            continue
        for path in _entries(base):
            if path.suffix == ".gguf":
                config.llama_cpp[path.name] = LlamaCppModelInfo(
                    path=path, size_bytes=_file_size(path)
                )


def _expand_tilde(path: str) -> Path:
    if path.startswith("~/"):
        home = os.environ.get("HOME")
        if home is not None:
            return Path(path.replace("~", home, 1))
    return Path(path)


def get_all_models(config: LocalModelConfig) -> list[LocalModel]:
    """Flatten a discovery result into one list."""
    models = [
        LocalModel("ollama", name, f"ollama://{name}", parse_size(info.size))
        for name, info in config.ollama.items()
    ]
    models.extend(
        LocalModel("lm_studio", name, str(info.path), info.size_bytes)
        for name, info in config.lm_studio.items()
    )
    models.extend(
        LocalModel("llama_cpp", name, str(info.path), info.size_bytes)
        for name, info in config.llama_cpp.items()
    )
    return models


def _parse_number(text: str) -> float | None:
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_size(size_str: str) -> int | None:
    """Parse sizes like ``4.7GB`` or ``500KB`` (binary units) into bytes."""
    text = size_str.strip()
    if text.endswith(("GB", "G")):
        multiplier, numeric = GB, _parse_number(text[:-2])
    elif text.endswith(("MB", "M")):
        multiplier, numeric = MB, _parse_number(text[:-2])
    elif text.endswith(("KB", "K")):
        multiplier, numeric = KB, _parse_number(text[:-2])
    elif text.endswith("B"):
        multiplier, numeric = 1, _parse_number(text[:-1])
    else:
        return None

    if numeric is None:
        return None
    value = numeric * multiplier
    if math.isnan(value) or value <= 0:
        return 0
    if value >= 2**64:
        return _U64_MAX
    return int(value)


def format_size(num_bytes: int) -> str:
    """Human-readable size with one decimal, in binary units."""
    if num_bytes >= GB:
        return f"{num_bytes / GB:.1f}GB"
    if num_bytes >= MB:
        return f"{num_bytes / MB:.1f}MB"
    if num_bytes >= KB:
        return f"{num_bytes / KB:.1f}KB"
    return f"{num_bytes}B"


def extract_date_from_iso(iso_date: str) -> str:
    """The ``YYYY-MM-DD`` part of an ISO timestamp."""
    return iso_date[:10]