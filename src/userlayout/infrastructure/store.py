"""LayoutStore — persistence collaborator for user layouts.

Layouts are saved whole: a save replaces every node row of the layout
inside one transaction, so a failed save leaves the previous version
intact. Loading rebuilds the tree from ``(parent_id, position)`` and
validates it before handing it out.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from userlayout.domain.descriptions import FolderDescription, description_from_payload
from userlayout.domain.errors import ErrorCode, LayoutError
from userlayout.domain.layout import DEFAULT_ROOT_NAME, UserLayout
from userlayout.infrastructure.database.schema import layout_nodes, layouts

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class LayoutStore:
    """SQLite-backed layout repository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    # ------------------------------------------------------------------
    # Layout rows
    # ------------------------------------------------------------------

    def create_layout(self, owner: str, *, root_name: str = DEFAULT_ROOT_NAME) -> int:
        """Create an empty layout (root folder only) for *owner*.

        Raises:
            LayoutError: ``NOT_PERMITTED`` if *owner* already has a layout.
        """
        now = _now_iso()
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    insert(layouts).values(owner=owner, sequences="{}", created=now, modified=now)
                )
                assert result.lastrowid is not None
                layout_id = int(result.lastrowid)
                layout = UserLayout(FolderDescription(name=root_name), layout_id=layout_id)
                self._write_nodes(conn, layout_id, layout)
        except IntegrityError as exc:
            raise LayoutError(
                ErrorCode.NOT_PERMITTED,
                f"A layout already exists for owner: {owner}",
                detail={"owner": owner},
            ) from exc
        logger.debug("Created layout %d for %s", layout_id, owner)
        return layout_id

    def find_layout_id(self, owner: str) -> int | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(layouts.c.id).where(layouts.c.owner == owner)).first()
        return None if row is None else int(row.id)

    def ensure_layout(self, owner: str, *, root_name: str = DEFAULT_ROOT_NAME) -> int:
        """Return *owner*'s layout id, creating the layout on first use."""
        layout_id = self.find_layout_id(owner)
        if layout_id is None:
            layout_id = self.create_layout(owner, root_name=root_name)
        return layout_id

    def list_layouts(self) -> list[dict[str, Any]]:
        """``{id, owner, created, modified}`` for every stored layout."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(layouts.c.id, layouts.c.owner, layouts.c.created, layouts.c.modified)
                .order_by(layouts.c.id)
            ).fetchall()
        return [dict(row._mapping) for row in rows]

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(self, layout_id: int) -> UserLayout:
        """Rebuild layout *layout_id* from its node rows.

        Raises:
            LayoutError: ``NOT_FOUND`` for an unknown layout,
                ``MALFORMED_LAYOUT`` if the stored rows do not form a tree.
        """
        with self._engine.connect() as conn:
            head = conn.execute(
                select(layouts.c.sequences).where(layouts.c.id == layout_id)
            ).first()
            if head is None:
                raise self._missing(layout_id)
            rows = conn.execute(
                select(layout_nodes)
                .where(layout_nodes.c.layout_id == layout_id)
                .order_by(layout_nodes.c.position, layout_nodes.c.node_id)
            ).fetchall()

        pairs = []
        for row in rows:
            try:
                payload = json.loads(row.payload)
            except json.JSONDecodeError as exc:
                raise LayoutError.malformed(
                    f"Corrupt payload for node {row.node_id}", node_id=row.node_id
                ) from exc
            payload["id"] = row.node_id
            pairs.append((row.parent_id, description_from_payload(row.node_type, payload)))

        return UserLayout.from_nodes(
            pairs,
            layout_id=layout_id,
            sequences=json.loads(head.sequences or "{}"),
        )

    def save(self, layout_id: int, layout: UserLayout) -> None:
        """Replace the stored nodes of *layout_id* with *layout*.

        Raises:
            LayoutError: ``NOT_FOUND`` for an unknown layout.
        """
        layout.validate()
        with self._engine.begin() as conn:
            result = conn.execute(
                update(layouts)
                .where(layouts.c.id == layout_id)
                .values(sequences=json.dumps(layout.sequences), modified=_now_iso())
            )
            if result.rowcount == 0:
                raise self._missing(layout_id)
            conn.execute(delete(layout_nodes).where(layout_nodes.c.layout_id == layout_id))
            self._write_nodes(conn, layout_id, layout)
        logger.debug("Saved layout %d (%d nodes)", layout_id, len(layout))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _write_nodes(conn: Connection, layout_id: int, layout: UserLayout) -> None:
        rows = []
        positions: dict[str | None, int] = {}
        for parent_id, description in layout.nodes():
            position = positions.get(parent_id, 0)
            positions[parent_id] = position + 1
            rows.append(
                {
                    "layout_id": layout_id,
                    "node_id": description.id,
                    "parent_id": parent_id,
                    "position": position,
                    "node_type": str(description.node_type),
                    "payload": description.model_dump_json(exclude={"id"}),
                }
            )
        conn.execute(insert(layout_nodes), rows)

    @staticmethod
    def _missing(layout_id: int) -> LayoutError:
        return LayoutError(
            ErrorCode.NOT_FOUND,
            f"No layout found with ID: {layout_id}",
            detail={"layout_id": layout_id},
        )
