from pathlib import Path

import pytest

from depotpilot.config import ConfigManager


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "DEPOTPILOT_SERVER_PORT",
        "DEPOTPILOT_SERVER_HOST",
        "DEPOTPILOT_REPOSITORY_PATH",
        "DEPOTPILOT_POWERSHELL",
        "DEPOTPILOT_LOG_LEVEL",
        "DEPOTPILOT_DATA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = ConfigManager(tmp_path / "config.yaml").load()

    assert config.server.port == 8000
    assert config.logs.capacity == 1000
    assert config.repository.default_path is None
    assert config.remote.ping_timeout == 1.0


def test_yaml_values_are_loaded(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n  port: 9100\nlogs:\n  capacity: 50\nrepository:\n  default_path: D:/Softpaqs\n"
        "remote:\n  silent_args: ['/s']\n",
        encoding="utf-8",
    )

    config = ConfigManager(path).load()

    assert config.server.port == 9100
    assert config.logs.capacity == 50
    assert config.repository.default_path == Path("D:/Softpaqs")
    assert config.remote.silent_args == ["/s"]


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPOTPILOT_SERVER_PORT", "9200")
    monkeypatch.setenv("DEPOTPILOT_POWERSHELL", "C:/pwsh/pwsh.exe")
    monkeypatch.setenv("DEPOTPILOT_LOG_LEVEL", "debug")
    monkeypatch.setenv("DEPOTPILOT_DATA_DIR", str(tmp_path / "data"))

    config = ConfigManager(tmp_path / "config.yaml").load()

    assert config.server.port == 9200
    assert config.remote.powershell == "C:/pwsh/pwsh.exe"
    assert config.advanced.log_level == "DEBUG"
    assert config.paths.logs_dir == tmp_path / "data" / "logs"


def test_save_then_load(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path / "nested" / "config.yaml")
    config = manager.load()
    config.server.port = 9300
    config.repository.default_path = tmp_path

    manager.save(config)
    reloaded = manager.reload()

    assert reloaded.server.port == 9300
    assert reloaded.repository.default_path == tmp_path
