from __future__ import annotations

from pathlib import Path

from bimigrate_core.home import anchor_path, ensure_bimigrate_layout, resolve_bimigrate_home


def test_home_from_env_is_resolved(tmp_path: Path) -> None:
    assert resolve_bimigrate_home({"BIMIGRATE_HOME": f"  {tmp_path}  "}) == tmp_path.resolve()


def test_relative_home_is_anchored_at_user_home() -> None:
    home = resolve_bimigrate_home({"BIMIGRATE_HOME": "bimigrate-test-home"})
    assert home == (Path.home() / "bimigrate-test-home").resolve()


def test_default_home_honours_xdg_on_linux(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("sys.platform", "linux")
    home = resolve_bimigrate_home({"XDG_DATA_HOME": str(tmp_path)})
    assert home == (tmp_path / "bimigrate").resolve()


def test_anchor_path(tmp_path: Path) -> None:
    assert anchor_path("sub/dir", tmp_path) == (tmp_path / "sub" / "dir").resolve()
    assert anchor_path(str(tmp_path / "abs"), Path("/ignored")) == (tmp_path / "abs").resolve()


def test_layout_creates_required_dirs(tmp_path: Path) -> None:
    paths = ensure_bimigrate_layout(tmp_path / "fresh")

    assert paths.home.is_dir()
    assert paths.db_dir == paths.home / "db"
    assert paths.db_dir.is_dir()
    assert paths.logs_dir.is_dir()
    assert paths.config_dir.is_dir()
    assert paths.core_config_path == paths.config_dir / "core.json"
