"""Terminal colour themes: built-in palettes and user themes stored as TOML."""

from __future__ import annotations

import string
import tomllib
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import platformdirs
import tomli_w

BUILTIN_THEMES: tuple[str, ...] = (
    "oxidized",
    "default",
    "tokyo_night",
    "hacker",
    "deep_black",
)


class ThemeError(Exception):
    """Raised when a theme cannot be found, read, parsed or written."""


@dataclass(frozen=True)
class RgbColor:
    """A colour as red, green and blue components (0-255)."""

    r: int
    g: int
    b: int

    @classmethod
    def from_hex(cls, hex_str: str) -> RgbColor:
        """Parse a colour written as ``#rrggbb`` (the ``#`` is optional)."""
        digits = hex_str.lstrip("#")
        if len(digits) != 6:
            raise ValueError(f"Invalid hex color: {digits}")
        if any(ch not in string.hexdigits for ch in digits):
            raise ValueError(f"Invalid hex color: {digits}")
        return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)


@dataclass(frozen=True)
class ResolvedColors:
    """A theme palette with every entry parsed into an RgbColor."""

    background: RgbColor
    foreground: RgbColor
    accent: RgbColor
    secondary: RgbColor
    success: RgbColor
    error: RgbColor
    warning: RgbColor
    info: RgbColor
    selection_bg: RgbColor
    selection_fg: RgbColor
    border: RgbColor
    muted: RgbColor


@dataclass
class ThemeColors:
    """Theme palette, each entry a hex colour string."""

    background: str
    foreground: str
    accent: str
    secondary: str
    success: str
    error: str
    warning: str
    info: str
    selection_bg: str
    selection_fg: str
    border: str
    muted: str

    def resolve(self) -> ResolvedColors:
        """Parse every palette entry; raises ValueError on a malformed colour."""
        return ResolvedColors(
            **{f.name: RgbColor.from_hex(getattr(self, f.name)) for f in fields(self)}
        )


@dataclass
class SyntaxColors:
    """Syntax highlighting colours as hex strings."""

    keyword: str
    string: str
    number: str
    comment: str
    function: str
    type: str
    variable: str
    operator: str
    punctuation: str


def _build(cls: type, data: Any, section: str) -> Any:
    if not isinstance(data, dict):
        raise ThemeError(f"Theme section '{section}' must be a table")
    try:
        return cls(**{f.name: data[f.name] for f in fields(cls)})
    except KeyError as exc:
        raise ThemeError(f"Missing field {exc.args[0]!r} in '{section}'") from None


@dataclass
class Theme:
    """A named theme with a UI palette and syntax colours."""

    name: str
    description: str
    author: str
    colors: ThemeColors
    syntax: SyntaxColors

    @classmethod
    def themes_dir(cls) -> Path:
        """Directory where user themes are stored."""
        return Path(platformdirs.user_config_dir("code", "quantumn")) / "themes"

    @classmethod
    def load(cls, name: str, themes_dir: Path | str | None = None) -> Theme:
        """Load a built-in theme, or a user theme from ``<themes_dir>/<name>.toml``."""
        theme = cls.builtin(name)
        if theme is not None:
            return theme

        directory = Path(themes_dir) if themes_dir is not None else cls.themes_dir()
        path = directory / f"{name}.toml"
        if not path.exists():
            raise ThemeError(f"Theme not found: {name}")
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ThemeError("Failed to read theme file") from exc
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as exc:
            raise ThemeError("Failed to parse theme file") from exc
        return cls.from_dict(data)

    @classmethod
    def list_themes(cls, themes_dir: Path | str | None = None) -> list[str]:
        """Names of the built-in themes followed by any user themes."""
        names = list(BUILTIN_THEMES)
        directory = Path(themes_dir) if themes_dir is not None else cls.themes_dir()
        if directory.exists():
            try:
                entries = sorted(directory.iterdir())
            except OSError as exc:
                raise ThemeError("Failed to read themes directory") from exc
            for entry in entries:
                if entry.stem and entry.stem not in names:
                    names.append(entry.stem)
        return names

    @classmethod
    def builtin(cls, name: str) -> Theme | None:
        factories = {
            "oxidized": cls.oxidized,
            "default": cls.default_theme,
            "tokyo_night": cls.tokyo_night,
            "hacker": cls.hacker,
            "deep_black": cls.deep_black,
        }
        factory = factories.get(name)
        return factory() if factory else None

    @classmethod
    def oxidized(cls) -> Theme:
        """Rusty brown on black (the default look)."""
        return cls(
            name="oxidized",
            description="Oxidized - Elegant rusty brown on deep black",
            author="Quantumn",
            colors=ThemeColors(
                background="#0f0f0f",
                foreground="#d4c4a8",
                accent="#c67b33",
                secondary="#8b5a2b",
                success="#7c9a5e",
                error="#bf4a3a",
                warning="#d49a4a",
                info="#a67c52",
                selection_bg="#3d2914",
                selection_fg="#f5e6d3",
                border="#4a3520",
                muted="#6b5344",
            ),
            syntax=SyntaxColors(
                keyword="#d4a574",
                string="#7c9a5e",
                number="#bf7a4a",
                comment="#5a4a3a",
                function="#d4a574",
                type="#c67b33",
                variable="#e8d9c5",
                operator="#d4a574",
                punctuation="#a67c52",
            ),
        )

    @classmethod
    def default_theme(cls) -> Theme:
        return cls(
            name="default",
            description="Classic Claude Code inspired theme",
            author="Quantumn",
            colors=ThemeColors(
                background="#1a1a2e",
                foreground="#eaeaea",
                accent="#7c3aed",
                secondary="#a855f7",
                success="#22c55e",
                error="#ef4444",
                warning="#f59e0b",
                info="#3b82f6",
                selection_bg="#7c3aed",
                selection_fg="#ffffff",
                border="#374151",
                muted="#6b7280",
            ),
            syntax=SyntaxColors(
                keyword="#a855f7",
                string="#22c55e",
                number="#f59e0b",
                comment="#6b7280",
                function="#3b82f6",
                type="#7c3aed",
                variable="#eaeaea",
                operator="#f59e0b",
                punctuation="#9ca3af",
            ),
        )

    @classmethod
    def tokyo_night(cls) -> Theme:
        return cls(
            name="tokyo_night",
            description="Tokyo Night - A dark theme with purple and blue accents",
            author="Quantumn",
            colors=ThemeColors(
                background="#1a1b26",
                foreground="#c0caf5",
                accent="#7aa2f7",
                secondary="#bb9af7",
                success="#9ece6a",
                error="#f7768e",
                warning="#e0af68",
                info="#7dcfff",
                selection_bg="#364a82",
                selection_fg="#c0caf5",
                border="#3b4261",
                muted="#565f89",
            ),
            syntax=SyntaxColors(
                keyword="#bb9af7",
                string="#9ece6a",
                number="#ff9e64",
                comment="#565f89",
                function="#7aa2f7",
                type="#2ac3de",
                variable="#c0caf5",
                operator="#89ddff",
                punctuation="#89ddff",
            ),
        )

    @classmethod
    def hacker(cls) -> Theme:
        return cls(
            name="hacker",
            description="Hacker - Matrix-style green on black theme",
            author="Quantumn",
            colors=ThemeColors(
                background="#000000",
                foreground="#00ff00",
                accent="#00ff00",
                secondary="#00aa00",
                success="#00ff00",
                error="#ff0000",
                warning="#ffff00",
                info="#00ffff",
                selection_bg="#003300",
                selection_fg="#00ff00",
                border="#004400",
                muted="#006600",
            ),
            syntax=SyntaxColors(
                keyword="#00ff00",
                string="#00aa00",
                number="#00ff00",
                comment="#006600",
                function="#00ff00",
                type="#00ff00",
                variable="#00cc00",
                operator="#00ff00",
                punctuation="#00aa00",
            ),
        )

    @classmethod
    def deep_black(cls) -> Theme:
        return cls(
            name="deep_black",
            description="Deep Black - Minimal high contrast dark theme",
            author="Quantumn",
            colors=ThemeColors(
                background="#0d0d0d",
                foreground="#ffffff",
                accent="#e0e0e0",
                secondary="#808080",
                success="#00ff00",
                error="#ff3333",
                warning="#ffaa00",
                info="#5599ff",
                selection_bg="#1a1a1a",
                selection_fg="#ffffff",
                border="#333333",
                muted="#666666",
            ),
            syntax=SyntaxColors(
                keyword="#ffaa00",
                string="#00ff00",
                number="#ff6666",
                comment="#555555",
                function="#5599ff",
                type="#ff66ff",
                variable="#ffffff",
                operator="#ffaa00",
                punctuation="#888888",
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Theme:
        try:
            name, description, author = data["name"], data["description"], data["author"]
        except KeyError as exc:
            raise ThemeError(f"Missing field {exc.args[0]!r}") from None
        return cls(
            name=name,
            description=description,
            author=author,
            colors=_build(ThemeColors, data.get("colors"), "colors"),
            syntax=_build(SyntaxColors, data.get("syntax"), "syntax"),
        )

    def save(self, themes_dir: Path | str | None = None) -> Path:
        """Write the theme as ``<themes_dir>/<name>.toml`` and return the path."""
        directory = Path(themes_dir) if themes_dir is not None else self.themes_dir()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ThemeError("Failed to create themes directory") from exc
        path = directory / f"{self.name}.toml"
        try:
            path.write_text(tomli_w.dumps(self.to_dict()), encoding="utf-8")
        except OSError as exc:
            raise ThemeError("Failed to write theme file") from exc
        return path