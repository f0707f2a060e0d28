"""
Dataset catalog: which datasets and record files exist under the data root.

Layout:
    <data_root>/<dataset>/eval-<record>.json

Every sub-directory of the data root is a dataset; its record names are the
<record> parts of matching files, sorted.
"""

import json
import re
from pathlib import Path
from typing import Optional

import structlog

from src.core.config import settings
from src.core.exceptions import DatasetNotFoundError
from src.domain.models.dataset import DatasetCatalog, DatasetEntry

log = structlog.get_logger(__name__)

RECORD_FILE_PATTERN = re.compile(r"^eval-(.+)\.json$")


def record_file_name(record: str) -> str:
    return f"eval-{record}.json"


def scan_datasets(data_root: Optional[Path] = None) -> DatasetCatalog:
    """
    Scan the data root for datasets and their record files.

    Args:
        data_root: Directory to scan (default: settings.data_dir)

    Returns:
        DatasetCatalog; datasets whose directory cannot be read are listed
        with no records

    Raises:
        DatasetNotFoundError: If the data root does not exist
    """
    root = Path(data_root or settings.data_dir)
    if not root.is_dir():
        log.error("data_root_missing", data_root=str(root))
        raise DatasetNotFoundError(f"Data directory {root} does not exist")

    datasets = {}
    for item in sorted(root.iterdir()):
        if not item.is_dir():
            continue

        records = []
        try:
            for file in item.iterdir():
                match = RECORD_FILE_PATTERN.match(file.name)
                if match:
                    records.append(match.group(1))
            records.sort()
        except OSError as e:
            log.warning("dataset_dir_unreadable", dataset=item.name, error=str(e))

        datasets[item.name] = DatasetEntry(records=records)

    log.info("datasets_scanned", data_root=str(root), dataset_count=len(datasets))
    return DatasetCatalog(datasets=datasets)


def resolve_record_path(
    dataset: str, record: str, data_root: Optional[Path] = None
) -> Path:
    """
    Path of a record file, refusing names that escape the data root.

    Raises:
        DatasetNotFoundError: If the dataset or record does not exist
    """
    root = Path(data_root or settings.data_dir).resolve()
    path = (root / dataset / record_file_name(record)).resolve()
    if root not in path.parents or not path.is_file():
        raise DatasetNotFoundError(f"Record {dataset}/{record} not found")
    return path


def write_datasets_config(
    catalog: DatasetCatalog, config_path: Optional[Path] = None
) -> Path:
    """Write the catalog as the JSON listing consumed by the explorer front end."""
    path = Path(config_path or settings.datasets_config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(catalog.model_dump(), indent=2, ensure_ascii=False), encoding="utf-8"
    )
    log.info(
        "datasets_config_written",
        path=str(path),
        dataset_count=len(catalog.datasets),
    )
    return path
