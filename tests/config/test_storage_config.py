from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from tabrecon.config import storage


def test_storage_config_prefers_explicit_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("TABRECON_DATA_DIR", str(custom))

    config = storage.get_storage_config()

    assert config.data_dir == custom.resolve()
    assert config.database_path == custom.resolve() / storage.DEFAULT_DB_FILENAME


def test_storage_config_falls_back_to_xdg_data_home(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("TABRECON_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
    monkeypatch.setattr(storage.os, "name", "posix")

    config = storage.get_storage_config()

    assert config.data_dir == (tmp_path / "xdg" / storage.APP_DIR_NAME).resolve()


def test_database_config_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert storage.get_database_config().uri == "sqlite:///override.db"


def test_database_config_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("TABRECON_DATA_DIR", str(tmp_path / "data-dir"))

    uri = storage.get_database_config().uri

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_storage_config_falls_back_to_home_without_xdg(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("TABRECON_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", "  ")
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr(storage.os, "name", "posix")

    config = storage.get_storage_config()

    expected = (tmp_path / ".local" / "share" / storage.APP_DIR_NAME).resolve()
    assert config.data_dir == expected
    assert not expected.exists()


def test_blank_database_uri_is_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATABASE_URI", "   ")
    config = storage.StorageConfig(data_dir=tmp_path, database_filename="runs.db")

    uri = storage.get_database_config(storage=config).uri

    assert uri.endswith("runs.db")
