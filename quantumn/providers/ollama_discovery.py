"""Find installed Ollama models through the server, the CLI or the models directory."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import subprocess
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from quantumn.providers.ollama import OllamaModelDetail, OllamaProvider

logger = logging.getLogger(__name__)

_U64_LIMIT = 2**64


@dataclass
class DetectedModels:
    """Models found by detection, and whether the server answered."""

    names: list[str] = field(default_factory=list)
    details: list[OllamaModelDetail] = field(default_factory=list)
    is_running: bool = False


def list_models_cli() -> list[str]:
    """Model names from ``ollama list``; raises RuntimeError if the command fails."""
    try:
        result = subprocess.run(["ollama", "list"], capture_output=True)
    except OSError as exc:
        raise RuntimeError(f"Failed to execute ollama list: {exc}") from exc

    if result.returncode != 0:
        stderr = (result.stderr or b"").decode("utf-8", errors="replace")
        raise RuntimeError(f"ollama list failed: {stderr}")

    stdout = (result.stdout or b"").decode("utf-8", errors="replace")
    # The first line is the NAME/ID/SIZE/MODIFIED header.
    return [line.split()[0] for line in stdout.splitlines()[1:] if line.split()]


def get_models_path() -> Path | None:
    """Ollama's models directory: OLLAMA_MODELS, else the platform default."""
    configured = os.environ.get("OLLAMA_MODELS")
    if configured:
        return Path(configured)

    if sys.platform == "win32":
        home = os.environ.get("USERPROFILE")
        if home is not None:
            return Path(home) / ".ollama" / "models"
    elif sys.platform == "darwin":
        home = os.environ.get("HOME")
        if home is not None:
            return Path(home) / ".ollama" / "models"
    elif sys.platform.startswith("linux"):
        home = os.environ.get("HOME")
        if home is not None:
            user_path = Path(home) / ".ollama" / "models"
            if user_path.exists():
                return user_path
        system_path = Path("/usr/share/ollama/models")
        if system_path.exists():
            return system_path

    return None


def get_model_blob_path(model_name: str) -> Path | None:
    """Path of the GGUF weights blob for an Ollama model name such as ``llama3:8b``."""
    models_path = get_models_path()
    if models_path is None:
        return None

    if ":" in model_name:
        parts = model_name.split(":")
        name, tag = parts[0], parts[1]
    else:
        name, tag = model_name, "latest"

    manifest_path = (
        models_path / "manifests" / "registry.ollama.ai" / "library" / name / tag
    )
    if not manifest_path.exists():
        return None

    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(manifest, dict):
        return None

    layers = manifest.get("layers")
    if not isinstance(layers, list):
        return None

    for layer in layers:
        if not isinstance(layer, dict):
            continue
        media_type = layer.get("mediaType")
        digest = layer.get("digest")
        if not isinstance(media_type, str) or "image.model" not in media_type:
            continue
        if not isinstance(digest, str):
            continue
        # Digests look like sha256:<hash>; blobs are stored as sha256-<hash>.
        blob = models_path / "blobs" / digest.replace(":", "-")
        if blob.exists():
            return blob
    return None


def _sorted_dirs(directory: Path) -> list[Path]:
    try:
        return sorted(entry for entry in directory.iterdir() if entry.is_dir())
    except OSError:
        return []


def _manifest_size(manifest: dict[str, Any]) -> int:
    value = manifest.get("total_size")
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < _U64_LIMIT:
        return value
    return 0


def _manifest_digest(manifest: dict[str, Any]) -> str:
    if "schema_version" not in manifest:
        return "unknown"
    return json.dumps(manifest["schema_version"], separators=(",", ":"), ensure_ascii=False)


def _manifest_modified(manifest_path: Path) -> str:
    try:
        mtime = manifest_path.stat().st_mtime
    except OSError:
        return "unknown"
    elapsed = time.time() - mtime
    days = int(elapsed // 86400) if elapsed >= 0 else 0
    return f"{days // 365:04}-01-01"


def scan_models_filesystem() -> list[OllamaModelDetail]:
    """Read model manifests from disk; raises RuntimeError if no models path is known."""
    models_path = get_models_path()
    if models_path is None:
        raise RuntimeError("Could not determine Ollama models path")
    if not models_path.exists():
        return []

    manifests_dir = models_path / "manifests"
    if not manifests_dir.exists():
        return []

    library_dir = manifests_dir / "registry" / "ollama.com" / "library"
    if not library_dir.exists():
        return []

    models: list[OllamaModelDetail] = []
    for namespace_path in _sorted_dirs(library_dir):
        for tag_path in _sorted_dirs(namespace_path):
            manifest_path = tag_path / "latest"
            if not manifest_path.exists():
                continue
            try:
                manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                continue
            if not isinstance(manifest, dict):
                continue
            models.append(
                OllamaModelDetail(
                    name=f"{namespace_path.name}:latest",
                    modified_at=_manifest_modified(manifest_path),
                    size=_manifest_size(manifest),
                    digest=_manifest_digest(manifest),
                )
            )
    return models


def _query_api() -> list[OllamaModelDetail] | None:
    """Ask the local server for its models on a separate thread and event loop."""
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(lambda: asyncio.run(OllamaProvider().list_models_detailed()))
        try:
            return future.result()
        except Exception:  # any failure means falling back to the next method
            return None


def detect_models_comprehensive() -> DetectedModels:
    """Detect installed models via the API, then the CLI, then the filesystem."""
    api_models = _query_api()
    if api_models is not None:
        names = [model.name for model in api_models]
        logger.debug("Detected %d Ollama models via API", len(names))
        return DetectedModels(names, api_models, True)

    try:
        cli_names = list_models_cli()
    except RuntimeError:
        pass
    else:
        logger.debug("Detected %d Ollama models via CLI", len(cli_names))
        details = [
            OllamaModelDetail(name=name, modified_at="unknown", size=0, digest="unknown")
            for name in cli_names
        ]
        return DetectedModels(cli_names, details, False)

    try:
        fs_models = scan_models_filesystem()
    except RuntimeError:
        pass
    else:
        names = [model.name for model in fs_models]
        logger.debug("Detected %d Ollama models via filesystem", len(names))
        return DetectedModels(names, fs_models, False)

    logger.debug("No Ollama models detected")
    return DetectedModels()