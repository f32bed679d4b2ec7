"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, userlayout.toml only contains
overrides. An empty (or missing) file yields a working in-project store.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from userlayout.domain.layout import DEFAULT_ROOT_NAME
from userlayout.domain.rules import DEFAULT_MAX_DEPTH

DEFAULT_STORE_PATH = ".userlayout/layouts.db"


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    # Relative paths resolve against the directory holding userlayout.toml.
    path: str = DEFAULT_STORE_PATH


class LayoutConfig(BaseModel):
    """[layout] section."""

    model_config = {"frozen": True}

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    default_owner: str = "guest"
    root_name: str = DEFAULT_ROOT_NAME


class CacheConfig(BaseModel):
    """[cache] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    max_entries: int = Field(default=256, ge=1)


class ListenersConfig(BaseModel):
    """[listeners] section."""

    model_config = {"frozen": True}

    discover: bool = True
