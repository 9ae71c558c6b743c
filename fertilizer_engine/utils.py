"""Helpers for locating and reading the datasets used by the fertilizer engine."""

from __future__ import annotations

import json
import os
import re
from functools import lru_cache
from os import PathLike
from pathlib import Path
from typing import Any, Dict, Mapping, TextIO, Union

import yaml

__all__ = [
    "load_json",
    "load_data",
    "load_dataset",
    "clear_dataset_cache",
    "dataset_paths",
    "dataset_file",
    "get_data_dir",
    "get_extra_dirs",
    "overlay_dir",
    "deep_update",
    "list_dataset_files",
    "whole_word_pattern",
    "first_number",
]


PathType = Union[str, PathLike]

# Base dataset directory is the repository ``data`` folder unless
# ``FERTILIZER_DATA_DIR`` points elsewhere. ``FERTILIZER_EXTRA_DATA_DIRS`` is an
# ``os.pathsep`` separated list merged after the base directory and
# ``FERTILIZER_OVERLAY_DIR`` is merged last so single files can be overridden.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DATA_ENV = "FERTILIZER_DATA_DIR"
EXTRA_ENV = "FERTILIZER_EXTRA_DATA_DIRS"
OVERLAY_ENV = "FERTILIZER_OVERLAY_DIR"

_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")


def _open_text(path: Path) -> TextIO:
    return open(path, "r", encoding="utf-8")


def load_json(path: PathType) -> Any:
    """Return the parsed JSON contents of ``path``.

    A :class:`FileNotFoundError` is raised if the file does not exist and a
    :class:`ValueError` is raised when the contents cannot be decoded. The
    error message always includes the file path.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    try:
        with _open_text(p) as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {p}: {exc}") from exc


def load_data(path: PathType) -> Any:
    """Return the parsed contents of ``path`` supporting JSON or YAML."""

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        return load_json(p)
    try:
        with _open_text(p) as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {p}: {exc}") from exc


def deep_update(base: Dict[str, Any], other: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``other`` into ``base`` and return ``base``."""

    for key, value in other.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, Mapping):
            deep_update(base[key], value)
        else:
            base[key] = value
    return base


def get_data_dir() -> Path:
    """Return base dataset directory honoring ``FERTILIZER_DATA_DIR``."""

    env = os.getenv(DATA_ENV)
    return Path(env).expanduser() if env else DEFAULT_DATA_DIR


def get_extra_dirs() -> tuple[Path, ...]:
    """Return additional dataset directories from ``FERTILIZER_EXTRA_DATA_DIRS``."""

    env = os.getenv(EXTRA_ENV)
    if not env:
        return ()
    dirs: list[Path] = []
    for part in env.split(os.pathsep):
        path = Path(part).expanduser()
        if path.is_dir():
            dirs.append(path)
    return tuple(dirs)


def overlay_dir() -> Path | None:
    """Return the overlay directory defined via ``FERTILIZER_OVERLAY_DIR``."""

    env = os.getenv(OVERLAY_ENV)
    return Path(env).expanduser() if env else None


def dataset_paths(include_overlay: bool = False) -> tuple[Path, ...]:
    """Return directories searched when loading datasets, in merge order."""

    paths = [get_data_dir(), *get_extra_dirs()]
    if include_overlay:
        ov = overlay_dir()
        if ov:
            paths.append(ov)
    return tuple(paths)


@lru_cache(maxsize=None)
def dataset_file(filename: str) -> Path | None:
    """Return the highest priority path for ``filename`` or ``None``."""

    for base in reversed(dataset_paths(include_overlay=True)):
        path = base / filename
        if path.exists():
            return path
    return None


@lru_cache(maxsize=None)
def load_dataset(filename: str) -> Any:
    """Return dataset ``filename`` merged across all search paths.

    Mappings are merged with :func:`deep_update`; any other top level value
    (for example a list of records) is replaced by later directories.
    """

    data: Any = {}
    for base in dataset_paths(include_overlay=True):
        path = base / filename
        if not path.exists():
            continue
        extra = load_data(path)
        if isinstance(extra, dict) and isinstance(data, dict):
            deep_update(data, extra)
        else:
            data = extra
    return data


def clear_dataset_cache() -> None:
    """Clear cached dataset results so environment changes are picked up."""

    load_dataset.cache_clear()
    dataset_file.cache_clear()


def list_dataset_files() -> list[str]:
    """Return alphabetically sorted dataset files available in search paths."""

    files: set[str] = set()
    for base in dataset_paths(include_overlay=True):
        if not base.is_dir():
            continue
        for path in base.rglob("*"):
            if (
                path.suffix.lower() in {".json", ".yaml", ".yml"}
                and path.is_file()
                and path.name != "dataset_catalog.json"
            ):
                files.add(path.relative_to(base).as_posix())
    return sorted(files)


@lru_cache(maxsize=256)
def whole_word_pattern(term: str) -> re.Pattern[str]:
    """Return a case-insensitive pattern matching ``term`` as a whole word.

    Look-arounds are used instead of ``\\b`` so terms starting or ending with
    punctuation such as ``"N (organic)"`` still match.
    """

    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)


def first_number(value: object) -> float | None:
    """Return the first decimal number found in ``value`` or ``None``."""

    if value is None:
        return None
    match = _NUMBER_RE.search(str(value))
    return float(match.group(1)) if match else None
