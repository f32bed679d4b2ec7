"""Tests for LayoutSettings — CLI flags, env vars, and TOML in one object."""

from pathlib import Path

import click
import pytest

from userlayout.config.settings import MEMORY_STORE, LayoutSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "USERLAYOUT_CONFIG",
        "USERLAYOUT_OWNER",
        "USERLAYOUT_STORE__PATH",
        "USERLAYOUT_CACHE__ENABLED",
        "USERLAYOUT_LAYOUT__MAX_DEPTH",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = LayoutSettings.from_cli(project_root=tmp_path)
        assert settings.project_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.effective_owner == "guest"
        assert settings.cache.enabled is True
        assert settings.db_path == str(tmp_path / ".userlayout" / "layouts.db")

    def test_frozen(self, tmp_path: Path) -> None:
        settings = LayoutSettings.from_cli(project_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "userlayout.toml").write_text(
            '[layout]\nmax_depth = 3\ndefault_owner = "alice"\n[cache]\nenabled = false\n'
        )
        settings = LayoutSettings.from_cli(project_root=tmp_path)
        assert settings.layout.max_depth == 3
        assert settings.effective_owner == "alice"
        assert settings.cache.enabled is False
        assert settings.cache.max_entries == 256

    def test_walk_up_sets_project_root(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "userlayout.toml").write_text('[store]\npath = "data/x.db"\n')
        nested = tmp_path / "deep" / "er"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = LayoutSettings.from_cli()
        assert settings.project_root == tmp_path.resolve()
        assert settings.db_path == str(tmp_path.resolve() / "data" / "x.db")

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[layout]\nroot_name = "Home"\n')
        settings = LayoutSettings.from_cli(config_path=str(custom))
        assert settings.layout.root_name == "Home"
        assert settings.config_path == custom
        assert settings.project_root == custom.parent

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="not found"):
            LayoutSettings.from_cli(config_path=str(tmp_path / "nope.toml"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "userlayout.toml").write_text("[layout\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            LayoutSettings.from_cli(project_root=tmp_path)


class TestPriority:
    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "userlayout.toml").write_text("[layout]\nmax_depth = 3\n")
        monkeypatch.setenv("USERLAYOUT_LAYOUT__MAX_DEPTH", "5")
        settings = LayoutSettings.from_cli(project_root=tmp_path)
        assert settings.layout.max_depth == 5

    def test_cli_beats_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("USERLAYOUT_OWNER", "env-owner")
        settings = LayoutSettings.from_cli(project_root=tmp_path, owner="cli-owner")
        assert settings.effective_owner == "cli-owner"

    def test_none_flags_do_not_mask(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("USERLAYOUT_OWNER", "env-owner")
        settings = LayoutSettings.from_cli(project_root=tmp_path, owner=None)
        assert settings.effective_owner == "env-owner"


class TestDbPath:
    def test_memory_store(self, tmp_path: Path) -> None:
        (tmp_path / "userlayout.toml").write_text(f'[store]\npath = "{MEMORY_STORE}"\n')
        settings = LayoutSettings.from_cli(project_root=tmp_path)
        assert settings.db_path == MEMORY_STORE

    def test_absolute_path_kept(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere" / "l.db"
        (tmp_path / "userlayout.toml").write_text(f'[store]\npath = "{target.as_posix()}"\n')
        settings = LayoutSettings.from_cli(project_root=tmp_path)
        assert settings.db_path == str(target)
