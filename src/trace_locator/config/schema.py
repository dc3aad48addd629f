"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitConfig(BaseModel):
    """Git CLI configuration."""

    git_path: str | None = None
    command_timeout: int = Field(30, ge=1, le=600, description="Timeout per git command")
    fetch_timeout: int = Field(120, ge=1, le=3600, description="Timeout for fetching remotes")
    whole_file_diffs: bool = True


class WorkspaceConfig(BaseModel):
    """Workspace file index configuration."""

    roots: list[Path] = Field(default_factory=lambda: [Path.cwd()])
    exclude_dirs: list[str] = [
        ".git",
        "node_modules",
        "__pycache__",
        ".venv",
        "venv",
        "vendor",
        "dist",
        "build",
    ]
    index_cache_ttl: int = Field(60, ge=0, description="Seconds a workspace listing is reused")
    max_files: int = Field(200_000, ge=1)

    @field_validator("roots")
    @classmethod
    def validate_roots(cls, v: list[Path]) -> list[Path]:
        """Workspace roots must be absolute so candidate paths are absolute."""
        return [path.expanduser().resolve() for path in v]


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("trace-locator.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class RetryConfig(BaseModel):
    """Retry configuration for fetching remotes."""

    max_attempts: int = Field(2, ge=1, le=10)
    initial_delay: float = Field(1.0, ge=0.1, le=10.0)
    max_delay: float = Field(10.0, ge=1.0, le=300.0)


class LocatorConfig(BaseSettings):
    """Root configuration for the trace locator."""

    git: GitConfig = GitConfig()
    workspace: WorkspaceConfig = WorkspaceConfig()
    repositories: dict[str, Path] = {}
    logging: LoggingConfig = LoggingConfig()
    retry: RetryConfig = RetryConfig()

    model_config = SettingsConfigDict(
        env_prefix="TRACE_LOCATOR_",
        env_file=".env",
        env_nested_delimiter="__",
    )

    @field_validator("repositories")
    @classmethod
    def validate_repositories(cls, v: dict[str, Path]) -> dict[str, Path]:
        """Validate repository id to path mappings."""
        for repo_id, path in v.items():
            if not repo_id.strip():
                raise ValueError("Repository id must not be empty")
            if not path.expanduser().is_absolute():
                raise ValueError(f"Repository path for {repo_id} must be absolute: {path}")
        return {repo_id: path.expanduser() for repo_id, path in v.items()}
