"""
Configuration management using pydantic-settings.
Loads from config.yaml, .env, and environment variables.
"""

from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .downloads.transfer import DEFAULT_DIRECTORY_CLASSES, DirectoryClass, choose_directory

# Load .env file at module import
load_dotenv()


class APISettings(BaseSettings):
    """CMS content API settings."""

    model_config = SettingsConfigDict(
        env_prefix="CMS_",
        extra="ignore",
    )

    content_url: str = Field(
        default="https://cms.tosu-thien.com/api/content/tosuthien",
        description="CMS content API base URL (schema names are appended)",
    )
    assets_url: str = Field(
        default="https://cms.tosu-thien.com/api/assets/tosuthien/",
        description="Base URL that asset ids are appended to",
    )
    audio_schema: str = Field(default="audio")
    book_schema: str = Field(default="book")
    center_schema: str = Field(default="center")
    video_schema: str = Field(default="video")

    timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")
    fetch_timeout: float = Field(default=15.0, description="Seconds before a catalog fetch is abandoned")
    rate_limit_delay: float = Field(default=0.0, description="Delay between requests (0 = disabled)")
    max_concurrent_requests: int = Field(default=5, description="Max concurrent API calls")
    user_agent: str = Field(default="tosuthien-app")


class StorageSettings(BaseSettings):
    """Persistent key-value store settings."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore",
    )

    backend: str = Field(default="sqlite", description="'sqlite' or 'memory'")
    db_path: Path = Field(default=Path("./data/cache/store.db"), description="SQLite database path")
    max_bytes: int | None = Field(default=None, description="Storage quota in bytes (None = unlimited)")


class DownloadSettings(BaseSettings):
    """Media download settings."""

    model_config = SettingsConfigDict(
        env_prefix="DOWNLOAD_",
        extra="ignore",
    )

    platform: str = Field(default="android", description="Platform whose directory rules apply")
    cache_dir: Path = Field(default=Path("./data/cache/media"), description="OS-purgeable directory")
    document_dir: Path = Field(default=Path("./data/documents"), description="Persistent directory")
    directory_classes: dict[str, DirectoryClass] = Field(
        default_factory=lambda: dict(DEFAULT_DIRECTORY_CLASSES),
        description="Directory class per platform",
    )

    audio_extension: str = Field(default=".mp3")
    audio_accept: str = Field(default="audio/mpeg, audio/*")
    book_extension: str = Field(default=".pdf")
    book_accept: str = Field(default="application/pdf")
    timeout: float = Field(default=120.0, description="Transfer timeout in seconds")


class NetworkSettings(BaseSettings):
    """Reachability probe settings."""

    model_config = SettingsConfigDict(
        env_prefix="NETWORK_",
        extra="ignore",
    )

    probe_url: str = Field(default="https://cms.tosu-thien.com/", description="URL probed for connectivity")
    probe_timeout: float = Field(default=5.0)
    poll_interval: float = Field(default=30.0, description="Seconds between probes while watching")


class LoggingSettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        extra="ignore",
    )

    level: str = Field(default="INFO")
    file: Path | None = Field(default=None, description="Optional plain-text log file")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api: APISettings = Field(default_factory=APISettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    downloads: DownloadSettings = Field(default_factory=DownloadSettings)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    debug: bool = Field(default=False)

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Settings":
        """Load settings from config.yaml and environment."""
        config_data: dict[str, Any] = {}

        if config_path is None:
            config_path = Path("config.yaml")

        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                yaml_content: Any = yaml.safe_load(f)
                yaml_config: dict[str, Any] = yaml_content or {}

            # Map yaml structure to settings; env vars still fill unset fields
            if "api" in yaml_config:
                config_data["api"] = APISettings(**yaml_config["api"])  # type: ignore
            if "storage" in yaml_config:
                config_data["storage"] = StorageSettings(**yaml_config["storage"])  # type: ignore
            if "downloads" in yaml_config:
                config_data["downloads"] = DownloadSettings(**yaml_config["downloads"])  # type: ignore
            if "network" in yaml_config:
                config_data["network"] = NetworkSettings(**yaml_config["network"])  # type: ignore
            if "logging" in yaml_config:
                config_data["logging"] = LoggingSettings(**yaml_config["logging"])  # type: ignore
            if "debug" in yaml_config:
                config_data["debug"] = yaml_config["debug"]

        return cls(**config_data)  # type: ignore

    @property
    def download_dir(self) -> Path:
        """Directory downloads go to on the configured platform."""
        return choose_directory(
            self.downloads.platform,
            self.downloads.cache_dir,
            self.downloads.document_dir,
            self.downloads.directory_classes,
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Path | None = None) -> Settings:
    """Reload settings from config."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
