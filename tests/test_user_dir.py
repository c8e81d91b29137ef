from __future__ import annotations

from pathlib import Path

from mixmark.core.profiles import config_path, load_config
from mixmark.core.user_dir import get_user_dir, user_dir_context


def test_user_dir_respects_environment(monkeypatch, tmp_path: Path) -> None:
    env_home = tmp_path / "home-root"
    env_scratch = tmp_path / "scratch-root"
    monkeypatch.setenv("MIXMARK_HOME", str(env_home))
    monkeypatch.setenv("MIXMARK_SCRATCH_DIR", str(env_scratch))

    with user_dir_context():
        assert config_path() == env_home / "config.json"
        assert get_user_dir().scratch_dir("diagrams") == env_scratch / "diagrams"
        assert (env_scratch / "diagrams").is_dir()


def test_root_defaults_under_xdg_config_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    with user_dir_context() as user_dir:
        assert user_dir.root == tmp_path / "xdg" / "mixmark"
        assert not user_dir.root_is_explicit


def test_context_restores_previous_user_dir(tmp_path: Path) -> None:
    outer = get_user_dir()
    with user_dir_context(root=tmp_path / "inner") as inner:
        assert get_user_dir() is inner
    assert get_user_dir() is outer


def test_scratch_dir_without_create(tmp_path: Path) -> None:
    with user_dir_context(root=tmp_path / "home", scratch_root=tmp_path / "scratch") as user_dir:
        target = user_dir.scratch_dir("odt", create=False)

        assert target == tmp_path / "scratch" / "odt"
        assert not target.exists()


def test_first_load_writes_default_config(tmp_path: Path) -> None:
    with user_dir_context(root=tmp_path / "fresh", scratch_root=tmp_path / "scratch"):
        store = load_config()

        assert (tmp_path / "fresh" / "config.json").exists()
        assert store.default_profile == "terminal"
