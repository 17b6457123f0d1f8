from __future__ import annotations

import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    SCHWAB_API_KEY: str | None = None
    SCHWAB_APP_SECRET: str | None = None
    SCHWAB_CALLBACK_URI: str = "https://127.0.0.1:8182"
    # Token file written by `schwab-mcp login` and refreshed by schwab-py.
    TOKEN_PATH: str = "~/.schwab_mcp/token.json"

    LOGFILE: str | None = None
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    LOG_MAX_SIZE: int = 10 * 1024 * 1024
    LOG_MAX_FILES: int = 5

    # snake_case accessors, same style as the rest of the codebase
    @property
    def schwab_api_key(self) -> str | None:
        return self.SCHWAB_API_KEY

    @property
    def schwab_app_secret(self) -> str | None:
        return self.SCHWAB_APP_SECRET

    @property
    def schwab_callback_uri(self) -> str:
        return self.SCHWAB_CALLBACK_URI

    @property
    def token_path(self) -> Path:
        return Path(self.TOKEN_PATH).expanduser()

    @property
    def log_file(self) -> Path:
        if self.LOGFILE:
            return Path(self.LOGFILE).expanduser()
        return Path(tempfile.gettempdir()) / "schwab_mcp.log"

    @property
    def debug(self) -> bool:
        return self.DEBUG or self.LOG_LEVEL.strip().upper() == "DEBUG"

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else self.LOG_LEVEL.strip().upper()

    @property
    def log_max_size(self) -> int:
        return self.LOG_MAX_SIZE

    @property
    def log_max_files(self) -> int:
        return self.LOG_MAX_FILES

    @property
    def has_credentials(self) -> bool:
        return bool(self.SCHWAB_API_KEY and self.SCHWAB_APP_SECRET)


def load_settings() -> Settings:
    return Settings()
