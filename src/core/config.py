"""
Application settings management.

Settings are loaded from environment variables with .env file support.
All configuration is validated using Pydantic.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.exceptions import ConfigurationError

DEFAULT_NUM_UNSEEN = 5
DEFAULT_MAX_NODES = 500


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML configuration files",
    )
    data_dir: Path = Field(
        default=Path("public/out"),
        description="Root directory holding one sub-directory per dataset",
    )
    datasets_config_path: Path = Field(
        default=Path("public/datasets-config.json"),
        description="Where the generated dataset listing is written",
    )

    # ==========================================================================
    # Pipeline defaults
    # ==========================================================================

    num_unseen: float = Field(
        default=DEFAULT_NUM_UNSEEN,
        ge=0,
        description="Smoothing term added to body size when computing confidence",
    )
    max_nodes: int = Field(
        default=DEFAULT_MAX_NODES,
        ge=1,
        description="Maximum number of rule nodes kept per query",
    )
    exclude_redundant: bool = Field(
        default=False,
        description="Prune dominated single-rule candidates by default",
    )

    # ==========================================================================
    # Data loading
    # ==========================================================================

    fetch_timeout: float = Field(
        default=30.0, gt=0, description="Timeout in seconds for remote data fetches"
    )
    record_cache_size: int = Field(
        default=8,
        ge=0,
        description="Parsed record files kept in memory, keyed by path and modification time",
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # ==========================================================================
    # Logging
    # ==========================================================================

    logs_dir: Path = Field(
        default=Path("logs"), description="Directory for per-session log files"
    )
    log_sessions_to_keep: int = Field(
        default=5, ge=1, description="Number of session log files retained"
    )


# ============================================================================
# Pipeline Configuration (from YAML)
# ============================================================================


class PipelineConfig(BaseModel):
    """Parameters of the graph-building pipeline.

    Passed explicitly into the GraphBuilder so smoothing and truncation
    boundaries can be exercised directly.
    """

    num_unseen: float = Field(
        default=DEFAULT_NUM_UNSEEN,
        ge=0,
        description="Laplace-style smoothing term for confidence",
    )
    max_nodes: int = Field(
        default=DEFAULT_MAX_NODES, ge=1, description="Node truncation limit"
    )
    exclude_redundant: bool = Field(
        default=False, description="Enable the redundancy filter"
    )

    @classmethod
    def from_settings(cls, source: "Settings") -> "PipelineConfig":
        return cls(
            num_unseen=source.num_unseen,
            max_nodes=source.max_nodes,
            exclude_redundant=source.exclude_redundant,
        )


def load_pipeline_config(config_path: Optional[Path] = None) -> PipelineConfig:
    """
    Load pipeline configuration from YAML file.

    Args:
        config_path: Path to pipeline_config.yaml. If None, looks in the
            settings config directory.

    Returns:
        PipelineConfig with validated settings. Values missing from the
        file fall back to the environment settings.

    Raises:
        ConfigurationError: If the file is malformed or fails validation
    """
    base = PipelineConfig.from_settings(settings)

    if config_path is None:
        config_path = settings.config_dir / "pipeline_config.yaml"

    config_path = Path(config_path)
    if not config_path.exists():
        return base

    try:
        with open(str(config_path)) as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{config_path}: invalid YAML: {e}") from e

    if not config_data:
        return base

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"{config_path}: expected a mapping at top level")

    section = config_data.get("pipeline", config_data)
    if section is None:
        return base
    if not isinstance(section, dict):
        raise ConfigurationError(f"{config_path}: pipeline section must be a mapping")

    merged = base.model_dump()
    merged.update(section)
    try:
        return PipelineConfig(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"{config_path}: {e}") from e


# Global settings instance
settings = Settings()
