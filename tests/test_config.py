"""
Tests for configuration management module.

Tests cover:
- Default settings initialization
- Settings loading from YAML
- Environment variable overrides
- Download directory selection
- Settings reload functionality
"""

from pathlib import Path

import pytest
import yaml

from tosu_offline.config import (
    APISettings,
    DownloadSettings,
    NetworkSettings,
    Settings,
    StorageSettings,
    get_settings,
    reload_settings,
)
from tosu_offline.downloads.transfer import DirectoryClass


class TestAPISettings:
    """Test APISettings class."""

    def test_default_values(self, monkeypatch):
        for var in ("CMS_CONTENT_URL", "CMS_TIMEOUT", "CMS_FETCH_TIMEOUT", "CMS_USER_AGENT"):
            monkeypatch.delenv(var, raising=False)

        settings = APISettings()

        assert settings.content_url.startswith("https://")
        assert settings.audio_schema == "audio"
        assert settings.fetch_timeout == 15.0
        assert settings.user_agent == "tosuthien-app"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CMS_TIMEOUT", "7.5")
        monkeypatch.setenv("CMS_ASSETS_URL", "https://assets.test/")

        settings = APISettings()

        assert settings.timeout == 7.5
        assert settings.assets_url == "https://assets.test/"


class TestStorageSettings:
    """Test StorageSettings class."""

    def test_default_values(self, monkeypatch):
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        monkeypatch.delenv("STORAGE_MAX_BYTES", raising=False)

        settings = StorageSettings()

        assert settings.backend == "sqlite"
        assert settings.max_bytes is None

    def test_custom_values(self):
        settings = StorageSettings(backend="memory", max_bytes=1024)

        assert settings.backend == "memory"
        assert settings.max_bytes == 1024


class TestDownloadSettings:
    """Test DownloadSettings class."""

    def test_default_media_headers(self):
        settings = DownloadSettings()

        assert settings.audio_accept == "audio/mpeg, audio/*"
        assert settings.book_accept == "application/pdf"
        assert settings.directory_classes["android"] is DirectoryClass.CACHE
        assert settings.directory_classes["ios"] is DirectoryClass.DOCUMENT

    @pytest.mark.parametrize("platform,expected", [("android", "cache"), ("ios", "docs"), ("windows", "docs")])
    def test_download_dir(self, tmp_path, platform, expected):
        settings = Settings(
            downloads=DownloadSettings(
                platform=platform,
                cache_dir=tmp_path / "cache",
                document_dir=tmp_path / "docs",
            )
        )

        assert settings.download_dir == tmp_path / expected


class TestSettingsLoad:
    """Test Settings.load from YAML."""

    def test_load_missing_file_uses_defaults(self, tmp_path):
        settings = Settings.load(tmp_path / "absent.yaml")

        assert isinstance(settings.api, APISettings)
        assert isinstance(settings.network, NetworkSettings)

    def test_load_from_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            yaml.safe_dump(
                {
                    "api": {"content_url": "https://cms.test/api/content/app", "fetch_timeout": 3},
                    "storage": {"backend": "memory"},
                    "downloads": {"platform": "ios", "document_dir": str(tmp_path / "docs")},
                    "network": {"probe_url": "https://cms.test/"},
                    "logging": {"level": "DEBUG"},
                    "debug": True,
                }
            ),
            encoding="utf-8",
        )

        settings = Settings.load(config_path)

        assert settings.api.content_url == "https://cms.test/api/content/app"
        assert settings.api.fetch_timeout == 3
        assert settings.storage.backend == "memory"
        assert settings.download_dir == tmp_path / "docs"
        assert settings.network.probe_url == "https://cms.test/"
        assert settings.logging.level == "DEBUG"
        assert settings.debug is True

    def test_empty_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("", encoding="utf-8")

        assert Settings.load(config_path).storage.db_path == Path("./data/cache/store.db")


class TestGlobalSettings:
    """Test get_settings / reload_settings."""

    def test_reload_replaces_global(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.safe_dump({"storage": {"backend": "memory"}}), encoding="utf-8")

        reloaded = reload_settings(config_path)

        assert get_settings() is reloaded
        assert get_settings().storage.backend == "memory"
        reload_settings(tmp_path / "absent.yaml")
