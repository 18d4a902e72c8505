"""Utility helpers shared by the book configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import BookConfigError, ThemeConfig


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(value: object | None, *, field: str) -> list[str]:
    """Normalize a string or list of strings into a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    msg = f"'{field}' must be a string or a list of strings."
    raise BookConfigError(msg)


def _resolve_path(base: Path, value: object) -> Path:
    """Return ``value`` as a path, anchored at ``base`` when relative."""
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base / path


def _build_theme_config(payload: typ.Mapping[str, typ.Any] | None) -> ThemeConfig:
    """Build a ThemeConfig instance from the provided mapping payload."""
    base = ThemeConfig()
    if not payload:
        return base
    return ThemeConfig(
        site_name=payload.get("site_name", base.site_name),
        tagline=payload.get("tagline", base.tagline),
        contents_label=payload.get("contents_label", base.contents_label),
        footer_note=payload.get("footer_note", base.footer_note),
    )


def _build_engine_commands(
    payload: typ.Mapping[str, typ.Any] | None,
) -> dict[str, list[str]] | None:
    """Return language-to-command mappings, or None to use the built-in defaults."""
    if payload is None:
        return None
    if not isinstance(payload, dict):
        msg = "'engines' must map language names to commands."
        raise BookConfigError(msg)
    commands: dict[str, list[str]] = {}
    for language, command in payload.items():
        match command:
            case str() if command.strip():
                commands[str(language).lower()] = command.split()
            case list() if command:
                commands[str(language).lower()] = [str(part) for part in command]
            case _:
                msg = f"Engine '{language}' needs a non-empty command."
                raise BookConfigError(msg)
    return commands


__all__ = [
    "_build_engine_commands",
    "_build_theme_config",
    "_optional_str",
    "_resolve_path",
    "_string_list",
]
