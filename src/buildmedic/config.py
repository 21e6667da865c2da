"""Configuration module for buildmedic settings.

Every external command the engine runs is configurable so the same control
loop can drive any npm-workspace style pipeline. Environment variables use the
``BUILDMEDIC_`` prefix; nested command overrides use a double underscore, e.g.
``BUILDMEDIC_COMMANDS__VERIFY="npm run build --workspace=packages/api"``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class CommandSettings(BaseModel):
    """Shell commands for analysis, remediation and verification."""

    type_check: str = "npm run type-check --workspaces"
    lint: str = "npm run lint --workspaces"
    build: str = "npm run build --workspaces"

    lint_fix: str = "npm run lint --fix --workspaces"
    # {module} is substituted with the missing module name
    install_module: str = "npm install {module}"
    clean_dependencies: str = "rm -rf node_modules package-lock.json"
    install_dependencies: str = "npm install"
    generate_schema: str = "npm run db:generate"

    # Narrower than `build`: core library only
    verify: str = "npm run build --workspace=packages/core-agents"

    @field_validator("install_module")
    @classmethod
    def _install_module_has_placeholder(cls, value: str) -> str:
        if "{module}" not in value:
            raise ValueError("install_module must contain a '{module}' placeholder")
        return value


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="BUILDMEDIC_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_root: Path = Field(default_factory=Path.cwd)
    log_filename: str = "ci-recovery.log"
    log_level: str = "INFO"

    # JSONL attempt history; None keeps the log in memory only
    history_path: Optional[Path] = None

    # Emit an unclassified-failure error when a command fails without parseable output
    detect_unclassified_failures: bool = False

    compiler_config_filename: str = "tsconfig.json"

    commands: CommandSettings = Field(default_factory=CommandSettings)

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level

    @property
    def log_path(self) -> Path:
        return self.project_root / self.log_filename

    @property
    def compiler_config_path(self) -> Path:
        return self.project_root / self.compiler_config_filename

    def resolved_history_path(self) -> Optional[Path]:
        if self.history_path is None:
            return None
        if self.history_path.is_absolute():
            return self.history_path
        return self.project_root / self.history_path


# Known-good compiler configuration written by the configuration reset.
DEFAULT_TSCONFIG: Dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2020",
        "module": "commonjs",
        "moduleResolution": "node",
        "lib": ["ES2020"],
        "strict": False,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
        "declaration": True,
        "declarationMap": True,
        "sourceMap": True,
    },
    "include": ["src/**/*"],
    "exclude": ["node_modules", "dist", "**/*.test.ts"],
}


def build_settings(**overrides: Any) -> Settings:
    """Create Settings, converting pydantic validation failures to ConfigError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid buildmedic configuration: {e}") from e
