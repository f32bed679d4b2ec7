"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. The store, manager and service are built lazily so
``--help`` and ``--version`` never touch the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from userlayout.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from userlayout.config.settings import LayoutSettings
    from userlayout.infrastructure.store import LayoutStore
    from userlayout.services.layout import LayoutService
    from userlayout.services.manager import LayoutManager
    from userlayout.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: LayoutSettings) -> None:
        self.settings = settings
        self._store: LayoutStore | None = None
        self._manager: LayoutManager | None = None
        self._service: LayoutService | None = None

        from userlayout.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            owner=settings.effective_owner,
        )

    @property
    def store(self) -> LayoutStore:
        """The layout store (database created on first access)."""
        if self._store is None:
            from userlayout.infrastructure.database import init_database
            from userlayout.infrastructure.store import LayoutStore

            self._store = LayoutStore(init_database(self.settings.db_path))
        return self._store

    @property
    def manager(self) -> LayoutManager:
        """Manager for the effective owner's layout, with listeners discovered."""
        if self._manager is None:
            from userlayout.domain.errors import LayoutError
            from userlayout.plugins.manager import ListenerRegistry
            from userlayout.services.manager import LayoutManager
            from userlayout.services.result import ServiceResult

            registry = ListenerRegistry()
            if self.settings.listeners.discover:
                registry.discover()
            try:
                self._manager = LayoutManager.for_owner(
                    self.store,
                    self.settings.effective_owner,
                    root_name=self.settings.layout.root_name,
                    max_depth=self.settings.layout.max_depth,
                    listeners=registry,
                )
            except LayoutError as exc:
                self.emit(ServiceResult.failure("load_layout", exc))
                raise
        return self._manager

    @property
    def service(self) -> LayoutService:
        if self._service is None:
            from userlayout.infrastructure.cache import TaggedCache
            from userlayout.services.layout import LayoutService

            cache = None
            if self.settings.cache.enabled:
                cache = TaggedCache(self.settings.cache.max_entries)
            self._service = LayoutService(self.manager, cache=cache)
        return self._service

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they don't
          pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
