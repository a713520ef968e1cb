"""Unit tests for ServiceConfigLoader."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from loom.config.application_config import LoomConfig
from loom.config.service_config_loader import ServiceConfigLoader


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Directory holding a base application.yaml; the working directory has no .env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STAGE", raising=False)
    monkeypatch.delenv("CONFIG_DIR", raising=False)
    monkeypatch.delenv("DB_PASSWORD", raising=False)
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "application.yaml").write_text(
        "app_name: todo\n"
        "readiness_timeout_seconds: 5\n"
        "web:\n"
        "  port: 9000\n"
        "redis:\n"
        "  host: redis.local\n"
        "databases:\n"
        "  - name: main\n"
        "    database: todo\n"
        "    username: app\n"
        "    password: ${DB_PASSWORD:changeme}\n"
    )
    return directory


class TestServiceConfigLoader:
    """Test cases for loading application.yaml with overrides."""

    def test_loads_base_configuration(self, config_dir: Path) -> None:
        # When
        config = ServiceConfigLoader.load_config(LoomConfig, str(config_dir))

        # Then
        assert config.app_name == "todo"
        assert config.stage == "local"
        assert config.web.port == 9000
        assert config.redis.host == "redis.local"
        assert config.readiness_timeout_seconds == 5
        assert config.databases[0].password == "changeme"

    def test_stage_file_is_deep_merged(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Given
        monkeypatch.setenv("STAGE", "prod")
        (config_dir / "application-prod.yml").write_text("web:\n  host: 10.0.0.1\n")

        # When
        config = ServiceConfigLoader.load_config(LoomConfig, str(config_dir))

        # Then
        assert config.stage == "prod"
        assert config.web.host == "10.0.0.1"
        assert config.web.port == 9000

    def test_environment_secret_replaces_default(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Given
        monkeypatch.setenv("DB_PASSWORD", "from-env")

        # When
        config = ServiceConfigLoader.load_config(LoomConfig, str(config_dir))

        # Then
        assert config.databases[0].password == "from-env"

    def test_missing_required_secret_raises(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Given
        monkeypatch.delenv("API_TOKEN", raising=False)
        (config_dir / "application-local.yaml").write_text("parameters:\n  token: ${API_TOKEN}\n")

        # When / Then
        with pytest.raises(ValueError, match="API_TOKEN"):
            ServiceConfigLoader.load_config(LoomConfig, str(config_dir))

    def test_config_dir_from_environment(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Given
        monkeypatch.setenv("CONFIG_DIR", str(config_dir))

        # When
        config = ServiceConfigLoader.load_config()

        # Then
        assert config.app_name == "todo"

    def test_missing_config_dir_raises(self, config_dir: Path) -> None:
        # When / Then
        with pytest.raises(ValueError, match="CONFIG_DIR"):
            ServiceConfigLoader.load_config()

    def test_missing_application_yaml_raises(self, tmp_path: Path, config_dir: Path) -> None:
        # Given
        empty = tmp_path / "empty"
        empty.mkdir()

        # When / Then
        with pytest.raises(FileNotFoundError):
            ServiceConfigLoader.load_config(LoomConfig, str(empty))

    def test_non_positive_readiness_timeout_is_rejected(self, config_dir: Path) -> None:
        # Given
        (config_dir / "application-local.yaml").write_text("readiness_timeout_seconds: 0\n")

        # When / Then
        with pytest.raises(ValidationError):
            ServiceConfigLoader.load_config(LoomConfig, str(config_dir))
