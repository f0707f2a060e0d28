"""Dataset listing models.

A dataset is a directory under the data root; each `eval-<record>.json`
file inside it is one record file of newline-delimited query records.
"""

from typing import Dict, List

from pydantic import BaseModel, Field


class DatasetEntry(BaseModel):
    """Record names available in one dataset, sorted."""

    records: List[str] = Field(default_factory=list)


class DatasetCatalog(BaseModel):
    """All datasets found under the data root."""

    datasets: Dict[str, DatasetEntry] = Field(default_factory=dict)

    def record_names(self, dataset: str) -> List[str]:
        entry = self.datasets.get(dataset)
        return list(entry.records) if entry else []
