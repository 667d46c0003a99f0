"""
Configuration management using Pydantic Settings.

Process settings (host, port, storage root, ...) come from the environment
and `.env`. The optional JSON config file carries the file-manager options
that do not fit flat environment variables: public links, CORS and the
storage adapter list.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CorsConfig(BaseModel):
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    allowed_methods: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allowed_headers: List[str] = Field(
        default_factory=lambda: [
            "Origin",
            "X-Requested-With",
            "Content-Type",
            "Accept",
            "Authorization",
        ]
    )
    max_age: int = 3600


class StorageConfig(BaseModel):
    """One storage adapter entry: `{"name": "local", "type": "local", "root": "./storage"}`."""
    # extra keys are handed to the adapter type as its config
    model_config = ConfigDict(extra="allow")

    name: str
    type: str = "local"
    root: str


class FinderConfig(BaseModel):
    public_links: Dict[str, str] = Field(default_factory=dict)
    cors: CorsConfig = Field(default_factory=CorsConfig)
    storages: Optional[List[StorageConfig]] = None

    @classmethod
    def from_file(cls, path: str) -> "FinderConfig":
        """Load the JSON config file; a missing file yields the defaults."""
        config_path = Path(path)
        if not config_path.exists():
            return cls()
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return cls.model_validate(data)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    HOST: str = "127.0.0.1"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    API_PATH: str = "/api"
    # Root of the default "local" adapter, created at startup if missing
    STORAGE_PATH: str = "./storage"
    CONFIG_FILE: str = "config.json"
    # Request body caps in bytes; larger requests are answered with 413
    MAX_JSON_SIZE: int = 100 * 1024 * 1024
    MAX_UPLOAD_SIZE: int = 100 * 1024 * 1024
    SLACK_WEBHOOK_URL: Optional[str] = None

    def load_finder_config(self) -> FinderConfig:
        return FinderConfig.from_file(self.CONFIG_FILE)

    def storage_configs(self, finder_config: FinderConfig) -> List[StorageConfig]:
        if finder_config.storages:
            return finder_config.storages
        return [StorageConfig(name="local", type="local", root=self.STORAGE_PATH)]

settings = Settings()
