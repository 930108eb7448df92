"""Configuration settings for the Questionnaire API."""

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# Environment Variable Substitution
# -----------------------------------------------------------------------------

ENV_VAR_PATTERN = re.compile(r"\$\{env\.([A-Z_][A-Z0-9_]*)(?::=([^}]*))?\}")


def replace_env_vars(config: Any) -> Any:
    """Recursively replace ${env.VAR:=default} patterns in config."""
    if isinstance(config, dict):
        return {k: replace_env_vars(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [replace_env_vars(v) for v in config]
    elif isinstance(config, str):

        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            default = match.group(2)
            value = os.environ.get(var_name)
            if value is not None:
                return value
            if default is not None:
                return default
            raise ValueError(f"Environment variable {var_name} is required but not set")

        return ENV_VAR_PATTERN.sub(replacer, config)
    return config


# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------


class SqliteStorageConfig(BaseModel):
    """SQLite storage backend configuration."""

    type: Literal["sqlite"] = "sqlite"
    db_path: str = Field(
        default="./questionnaire_responses.db",
        description="File path for the SQLite database",
    )

    @property
    def connection_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.db_path}"

    @classmethod
    def sample_config(cls) -> dict[str, Any]:
        return {
            "type": "sqlite",
            "db_path": "${env.SQLITE_DB_PATH:=./questionnaire_responses.db}",
        }


# -----------------------------------------------------------------------------
# Server, Logging, Dashboard, Monitoring
# -----------------------------------------------------------------------------


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingConfig(BaseModel):
    """Log output configuration."""

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    enable_access_logs: bool = Field(default=True)


class DashboardConfig(BaseModel):
    """Location of the admin dashboard and public assets."""

    admin_page: Path = Field(
        default=Path("./admin-dashboard.html"),
        description="HTML file served at /admin",
    )
    static_dir: Path = Field(
        default=Path("./public"),
        description="Directory served at / when it exists",
    )


class MonitoringConfig(BaseModel):
    """Prometheus metrics configuration."""

    enable_metrics: bool = Field(default=True)


# -----------------------------------------------------------------------------
# Main Stack Configuration
# -----------------------------------------------------------------------------


class StackConfig(BaseModel):
    """Main configuration for the Questionnaire API."""

    version: int = Field(default=1, description="Config schema version")

    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: SqliteStorageConfig = Field(default_factory=SqliteStorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StackConfig":
        """Create config from dict with environment variable substitution."""
        resolved = replace_env_vars(data)
        return cls.model_validate(resolved)

    @classmethod
    def sample_config(cls) -> dict[str, Any]:
        """Generate sample configuration for documentation."""
        return {
            "version": 1,
            "server": {
                "host": "0.0.0.0",
                "port": "${env.PORT:=3000}",
            },
            "storage": SqliteStorageConfig.sample_config(),
            "logging": {
                "level": "${env.LOG_LEVEL:=INFO}",
                "json_logs": False,
            },
            "dashboard": {
                "admin_page": "./admin-dashboard.html",
                "static_dir": "./public",
            },
        }


# -----------------------------------------------------------------------------
# Settings (for simple environment-based config)
# -----------------------------------------------------------------------------


class Settings(BaseSettings):
    """Simple settings for environment-based configuration."""

    model_config = SettingsConfigDict(
        env_prefix="QUESTIONNAIRE_API_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Config file path (if using YAML config)
    config_file: Path | None = Field(
        default=None,
        description="Path to YAML configuration file",
    )

    # Server settings (used if no config file)
    host: str = Field(default="0.0.0.0")
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("port", "QUESTIONNAIRE_API_PORT", "PORT"),
    )
    debug: bool = Field(default=False)

    database_path: str = Field(default="./questionnaire_responses.db")
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    def to_stack_config(self) -> StackConfig:
        """Convert simple settings to full StackConfig."""
        return StackConfig(
            server=ServerConfig(host=self.host, port=self.port),
            storage=SqliteStorageConfig(db_path=self.database_path),
            logging=LoggingConfig(level=self.log_level, json_logs=self.json_logs),
        )


# Global settings instance
settings = Settings()
