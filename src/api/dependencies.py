"""Dependency injection for API routes."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

from fastapi import Query

from src.core.config import PipelineConfig, load_pipeline_config, settings
from src.services.query_processor import QueryProcessor


@lru_cache(maxsize=1)
def get_pipeline_config() -> PipelineConfig:
    """Pipeline configuration, loaded once per process.

    Combines environment settings with config/pipeline_config.yaml if present.
    """
    return load_pipeline_config()


def get_data_root() -> Path:
    """FastAPI dependency for the dataset root directory."""
    return settings.data_dir


def get_query_processor(
    num_unseen: Annotated[
        Optional[float], Query(ge=0, description="Override the smoothing term")
    ] = None,
) -> QueryProcessor:
    """QueryProcessor for a request, optionally overriding num_unseen.

    Processors hold configuration only, so a fresh one per request is cheap.
    """
    config = get_pipeline_config()
    if num_unseen is not None:
        config = config.model_copy(update={"num_unseen": num_unseen})
    return QueryProcessor(config)
