#!/usr/bin/env python3
"""
Generate the dataset listing consumed by the explorer front end.

Scans the data root (default: settings.data_dir) for dataset directories and
their eval-<record>.json files, then writes
{"datasets": {name: {"records": [...]}}} to the listing path.

Usage:
    python scripts/generate_datasets_config.py
    python scripts/generate_datasets_config.py --data-dir public/out --output public/datasets-config.json
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.config import settings
from src.core.exceptions import DatasetNotFoundError
from src.services.dataset_catalog import scan_datasets, write_datasets_config


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate datasets-config.json from the data directory"
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=settings.data_dir,
        help=f"Dataset root directory (default: {settings.data_dir})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=settings.datasets_config_path,
        help=f"Listing file to write (default: {settings.datasets_config_path})",
    )

    args = parser.parse_args()

    try:
        catalog = scan_datasets(args.data_dir)
    except DatasetNotFoundError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    path = write_datasets_config(catalog, args.output)
    print(f"Wrote {path}")
    print(f"Found {len(catalog.datasets)} datasets")
    return 0


if __name__ == "__main__":
    sys.exit(main())
