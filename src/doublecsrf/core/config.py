# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Configuration for doublecsrf: YAML/TOML sources, env overrides, dataclass binding.

Values are addressed with dotted keys (``doublecsrf.csrf.cookie_name``).
Lookup order, highest first:

1. Environment variable ``DOUBLECSRF_<KEY>``, where ``<KEY>`` is the dotted
   key without its ``doublecsrf.`` prefix, upper-cased, dots as underscores
   (``DOUBLECSRF_CSRF_COOKIE_NAME``).
2. Profile overlays, then the base file, then the package defaults.
3. The dataclass default, when binding with :meth:`Config.bind`.

String values may reference other values with ``${ENV_VAR}``,
``${dotted.key}`` or ``${name:fallback}``.
"""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
import types
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, TypeVar, get_args, get_origin, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_PREFIX_ATTR = "__doublecsrf_config_prefix__"
_ENV_PREFIX = "DOUBLECSRF_"
_FILE_STEM = "doublecsrf"
_EXTENSIONS = (".yaml", ".toml")
_DEFAULTS_LABEL = "doublecsrf-defaults.yaml (package defaults)"
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_DEPTH = 10
_MISSING = object()


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Attach a configuration prefix to a dataclass so :meth:`Config.bind` can fill it.

    Usage:
        @config_properties(prefix="doublecsrf.csrf")
        @dataclass
        class CsrfProperties:
            header_name: str = "x-csrf-token"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Nested configuration mapping with dotted-key access."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Files merged into this config, lowest precedence first."""
        return list(self._sources)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_sources(
        cls,
        base_dir: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Merge ``doublecsrf.yaml``/``.toml`` files found under *base_dir*.

        ``base_dir/config`` is searched before ``base_dir`` itself, base
        files before ``doublecsrf-<profile>`` overlays, and profiles in the
        order given. Later files override earlier ones.
        """
        base_dir = Path(base_dir)
        names = [_FILE_STEM] + [f"{_FILE_STEM}-{profile}" for profile in active_profiles or []]
        candidates = (
            directory / f"{name}{ext}"
            for name in names
            for directory in (base_dir / "config", base_dir)
            for ext in _EXTENSIONS
        )
        return cls._assemble(candidates, load_defaults)

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* plus ``<stem>-<profile><suffix>`` overlays beside it.

        A ``doublecsrf.*`` file is treated as a project directory marker and
        loaded through :meth:`from_sources`.
        """
        path = Path(path)
        if path.stem == _FILE_STEM or path.stem.startswith(f"{_FILE_STEM}-"):
            return cls.from_sources(path.parent, active_profiles, load_defaults)

        overlays = (path.with_name(f"{path.stem}-{profile}{path.suffix}") for profile in active_profiles or [])
        candidates = [path, *overlays] if path.exists() else []
        return cls._assemble(candidates, load_defaults)

    @classmethod
    def _assemble(cls, candidates: Iterator[Path] | list[Path], load_defaults: bool) -> Config:
        data: dict[str, Any] = {}
        sources: list[str] = []
        if load_defaults:
            data = cls._load_package_defaults()
            sources.append(_DEFAULTS_LABEL)
        for candidate in candidates:
            if candidate.is_file():
                data = _merge(data, _read_file(candidate))
                sources.append(str(candidate))

        config = cls(data)
        config._sources = sources
        return config

    @staticmethod
    def _load_package_defaults() -> dict[str, Any]:
        resource = importlib.resources.files("doublecsrf.resources").joinpath("doublecsrf-defaults.yaml")
        return yaml.safe_load(resource.read_text(encoding="utf-8")) or {}

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at dotted *key*, or *default* when it is unset."""
        from_env = os.environ.get(_env_name(key))
        if from_env is not None:
            return from_env

        value = self._lookup(key)
        if value is _MISSING:
            return default
        if isinstance(value, str):
            return self._interpolate(value)
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Return the mapping stored under *prefix*, or ``{}``."""
        section = self._lookup(prefix)
        return section if isinstance(section, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Instantiate a :func:`config_properties` dataclass from this config.

        Unset fields keep their dataclass default. Strings (typically from
        the environment) are converted to the field's ``int``, ``float``,
        ``bool`` or ``list[str]`` type.
        """
        prefix = getattr(config_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        hints = get_type_hints(config_cls)
        values: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            raw = self.get(f"{prefix}.{field.name}")
            if raw is not None:
                values[field.name] = _coerce(raw, hints.get(field.name))
        return config_cls(**values)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return _MISSING
            node = node[part]
        return node

    def _interpolate(self, value: str, depth: int = 0) -> str:
        if "${" not in value:
            return value
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(
                f"Max recursion depth exceeded resolving placeholders in '{value}'. Check for circular references."
            )

        def _substitute(match: re.Match[str]) -> str:
            name, has_fallback, fallback = match.group(1).partition(":")
            env_value = os.environ.get(name)
            if env_value is not None:
                return env_value
            found = self._lookup(name)
            if found is not _MISSING:
                return self._interpolate(str(found), depth + 1)
            if has_fallback:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}': not found in environment or config")

        return _PLACEHOLDER.sub(_substitute, value)


def _env_name(key: str) -> str:
    """``doublecsrf.csrf.cookie_name`` -> ``DOUBLECSRF_CSRF_COOKIE_NAME``."""
    return _ENV_PREFIX + key.removeprefix(f"{_FILE_STEM}.").upper().replace(".", "_").replace("-", "_")


def _read_file(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with path.open("rb") as fh:
            return tomllib.load(fh)
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge *override* onto a copy of *base*."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        result[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return result


def _coerce(value: Any, annotation: Any) -> Any:
    if not isinstance(value, str):
        return value
    target = _unwrap_optional(annotation)
    if target is bool:
        return value.strip().lower() in ("true", "1", "yes", "on")
    if target in (int, float):
        return target(value)
    if target == list[str]:
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def _unwrap_optional(annotation: Any) -> Any:
    """Return ``X`` for an ``X | None`` annotation, else the annotation itself."""
    if get_origin(annotation) is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation
