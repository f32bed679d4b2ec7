"""InitService — create a userlayout project directory.

A project is a directory holding ``userlayout.toml`` plus the SQLite
store it points at. Initialization is idempotent: an existing config is
left untouched and an owner that already has a layout keeps it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from userlayout.config.discovery import CONFIG_FILENAME
from userlayout.config.models import DEFAULT_STORE_PATH
from userlayout.domain.errors import LayoutError
from userlayout.infrastructure.database import init_database
from userlayout.infrastructure.store import LayoutStore
from userlayout.services.result import ServiceResult

logger = logging.getLogger(__name__)

_CONFIG_TEMPLATE = """\
# userlayout project configuration. Only overrides are needed here.

[store]
path = "{store_path}"

[layout]
default_owner = "{owner}"
"""


class InitService:
    """Project initialization (no manager needed)."""

    @staticmethod
    def init_project(
        path: Path,
        *,
        owner: str,
        root_name: str | None = None,
        store_path: str = DEFAULT_STORE_PATH,
    ) -> ServiceResult:
        """Write ``userlayout.toml`` if missing, create the store, and seed *owner*'s layout."""
        op = "init_project"
        path.mkdir(parents=True, exist_ok=True)
        config_file = path / CONFIG_FILENAME
        wrote_config = not config_file.exists()
        if wrote_config:
            config_file.write_text(
                _CONFIG_TEMPLATE.format(store_path=store_path, owner=owner),
                encoding="utf-8",
            )
            logger.debug("Wrote %s", config_file)

        db_path = Path(store_path)
        if not db_path.is_absolute():
            db_path = path / db_path

        try:
            store = LayoutStore(init_database(db_path))
            existing = store.find_layout_id(owner)
            if existing is not None:
                layout_id = existing
            elif root_name is None:
                layout_id = store.create_layout(owner)
            else:
                layout_id = store.create_layout(owner, root_name=root_name)
        except LayoutError as exc:
            return ServiceResult.failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "project_root": str(path),
                "config_file": str(config_file),
                "config_created": wrote_config,
                "store_path": str(db_path),
                "owner": owner,
                "layout_id": layout_id,
                "layout_created": existing is None,
            },
        )
