"""
Tests for configuration loading and validation.

COVERAGE:
- Schema defaults and field constraints
- YAML loading, missing file, non-mapping file
- Environment and .env.local overrides
- Secret redaction
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError as PydanticValidationError

from hanger.config import (
    AdminConfig,
    ConfigLoader,
    ConfigSchema,
    Locale,
    LogLevel,
    MarketplaceConfig,
    StoreConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ConfigLoader.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


def write_config(config_dir: Path, text: str) -> Path:
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestSchema:

    def test_defaults(self):
        config = ConfigSchema()

        assert config.store.snapshot_path == Path("data") / "store.json"
        assert config.store.backup_count == 5
        assert config.admin.handle == "admin"
        assert config.marketplace.locale == Locale.KO
        assert config.marketplace.display_timezone == "Asia/Seoul"
        assert config.logging.log_level == LogLevel.INFO

    def test_from_dict_none(self):
        assert ConfigSchema.from_dict(None) == ConfigSchema()

    def test_snapshot_name_must_be_bare(self):
        with pytest.raises(PydanticValidationError):
            StoreConfig(snapshot_name="../escape.json")

    def test_backup_count_bounds(self):
        with pytest.raises(PydanticValidationError):
            StoreConfig(backup_count=-1)
        with pytest.raises(PydanticValidationError):
            StoreConfig(backup_count=51)

    def test_unknown_timezone(self):
        with pytest.raises(PydanticValidationError):
            MarketplaceConfig(display_timezone="Mars/Olympus")

    def test_unknown_block_forbidden(self):
        with pytest.raises(PydanticValidationError):
            ConfigSchema(broker={"api_key": "x"})

    def test_blank_admin_handle(self):
        with pytest.raises(PydanticValidationError):
            AdminConfig(handle="")

    def test_yaml_round_trip(self, tmp_path):
        original = ConfigSchema(marketplace=MarketplaceConfig(locale=Locale.EN))
        path = tmp_path / "out.yaml"

        original.to_yaml(path)

        assert ConfigSchema.from_yaml(path) == original


class TestLoader:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nowhere") == ConfigSchema()

    def test_reads_yaml(self, tmp_path):
        write_config(tmp_path, "store:\n  data_dir: /srv/hanger\n  backup_count: 2\n")

        config = load_config(tmp_path)

        assert config.store.data_dir == Path("/srv/hanger")
        assert config.store.backup_count == 2

    def test_non_mapping_yaml(self, tmp_path):
        write_config(tmp_path, "- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            ConfigLoader(tmp_path).load()

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        write_config(tmp_path, "admin:\n  handle: boss\nlogging:\n  log_level: INFO\n")
        monkeypatch.setenv("HANGER_ADMIN_HANDLE", "root")
        monkeypatch.setenv("HANGER_LOG_LEVEL", "DEBUG")

        config = load_config(tmp_path)

        assert config.admin.handle == "root"
        assert config.logging.log_level == LogLevel.DEBUG

    def test_blank_env_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HANGER_ADMIN_HANDLE", "   ")
        assert load_config(tmp_path).admin.handle == "admin"

    def test_env_local_file(self, tmp_path, monkeypatch):
        (tmp_path / ".env.local").write_text("HANGER_TIMEZONE=Europe/Berlin\n", encoding="utf-8")

        with patch.dict(os.environ):
            config = load_config(tmp_path)

        assert config.marketplace.display_timezone == "Europe/Berlin"

    def test_env_local_does_not_override_process_env(self, tmp_path, monkeypatch):
        (tmp_path / ".env.local").write_text("HANGER_TIMEZONE=Europe/Berlin\n", encoding="utf-8")
        monkeypatch.setenv("HANGER_TIMEZONE", "Asia/Tokyo")

        with patch.dict(os.environ):
            assert load_config(tmp_path).marketplace.display_timezone == "Asia/Tokyo"

    def test_invalid_config_raises_value_error(self, tmp_path):
        write_config(tmp_path, "store:\n  backup_count: 999\n")

        with pytest.raises(ValueError, match="Configuration validation failed"):
            load_config(tmp_path)

    def test_secret_redacted_in_error(self, tmp_path):
        write_config(tmp_path, "admin:\n  verification_id: 9876543210\n")

        with pytest.raises(ValueError) as exc_info:
            load_config(tmp_path)

        assert "9876543210" not in str(exc_info.value)
        assert "[REDACTED]" in str(exc_info.value)


class TestScrubSecrets:

    def test_nested_secret(self):
        scrubbed = ConfigLoader.scrub_secrets({"admin": {"handle": "admin", "verification_id": "x"}})

        assert scrubbed == {"admin": {"handle": "admin", "verification_id": "[REDACTED]"}}

    def test_original_untouched(self):
        original = {"admin": {"verification_id": "x"}}
        ConfigLoader.scrub_secrets(original)
        assert original["admin"]["verification_id"] == "x"
