"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``USERLAYOUT_*`` prefix (``USERLAYOUT_CACHE__ENABLED``)
  3. TOML file    — ``userlayout.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from userlayout.config.discovery import find_config
from userlayout.config.models import CacheConfig, LayoutConfig, ListenersConfig, StoreConfig

MEMORY_STORE = ":memory:"


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``userlayout.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path for the settings object under construction.
_tls = threading.local()


class LayoutSettings(BaseSettings):
    """Settings for the userlayout CLI.

    Attributes:
        project_root: Directory relative store paths resolve against
            (parent of ``userlayout.toml``, or CWD if no config found).
        config_path: The TOML file in use, if any.
        owner: ``--owner`` override; falls back to ``[layout] default_owner``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "USERLAYOUT_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    owner: str | None = None

    # --- TOML sections ---
    store: StoreConfig = Field(default_factory=StoreConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    listeners: ListenersConfig = Field(default_factory=ListenersConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @property
    def effective_owner(self) -> str:
        return self.owner or self.layout.default_owner

    @property
    def db_path(self) -> str:
        """Store location with relative paths anchored at :attr:`project_root`."""
        if self.store.path == MEMORY_STORE:
            return MEMORY_STORE
        path = Path(self.store.path).expanduser()
        if not path.is_absolute():
            path = self.project_root / path
        return str(path)

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> LayoutSettings:
        """Construct settings from a CLI invocation.

        Raises:
            click.ClickException: *config_path* is given but does not exist,
                or the TOML file cannot be parsed.
        """
        toml_path: Path | None
        if config_path:
            toml_path = Path(config_path)
            if not toml_path.is_file():
                raise click.ClickException(f"Config file not found: {config_path}")
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        # None means "not given on the command line" and must not mask lower sources.
        overrides = {k: v for k, v in cli_flags.items() if v is not None}

        _tls.toml_path = toml_path
        try:
            return cls(project_root=resolved_root, config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None
