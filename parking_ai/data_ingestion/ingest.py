from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, NamedTuple

import pandas as pd

from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig
from .normalize import normalize_spaces, normalize_transactions


SPACE_COLUMNS: List[str] = [
    "id",
    "name",
    "address",
    "lat",
    "lng",
    "price",
    "total_spots",
    "available_spots",
    "status",
    "rating",
    "review_count",
]

HISTORY_COLUMNS: List[str] = [
    "parking_space_id",
    "user_id",
    "status",
    "total_price",
    "start_time",
    "created_at",
]


class IngestionResult(NamedTuple):
    spaces_path: Path
    history_path: Path


def _read_documents(path: Path) -> list[dict[str, Any]]:
    """
    Load a JSON document export.

    Accepts a plain list of documents, ``{"documents": [...]}``, or a mapping
    of document id -> document (the id is folded into the document).
    """
    if not path.exists():
        return []

    with open(path, "r", encoding="utf-8") as f:
        obj = json.load(f)

    if isinstance(obj, list):
        return [doc for doc in obj if isinstance(doc, dict)]

    if isinstance(obj, dict) and isinstance(obj.get("documents"), list):
        return [doc for doc in obj["documents"] if isinstance(doc, dict)]

    if isinstance(obj, dict):
        docs: list[dict[str, Any]] = []
        for doc_id, doc in obj.items():
            if isinstance(doc, dict):
                docs.append({"id": doc_id, **doc})
        return docs

    raise ValueError(f"Unsupported JSON structure in {path}")


def _spaces_frame(docs: list[dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for space in normalize_spaces(docs):
        rows.append({
            "id": space.id,
            "name": space.name,
            "address": space.address,
            "lat": space.coordinates.lat,
            "lng": space.coordinates.lng,
            "price": space.price,
            "total_spots": space.total_spots,
            "available_spots": space.available_spots,
            "status": space.status.value,
            "rating": space.rating,
            "review_count": space.review_count,
        })
    return pd.DataFrame(rows, columns=SPACE_COLUMNS)


def _history_frame(docs: list[dict[str, Any]]) -> pd.DataFrame:
    rows = [
        {
            "parking_space_id": record.parking_space_id,
            "user_id": record.user_id,
            "status": record.status,
            "total_price": record.total_price,
            "start_time": record.start_time.isoformat() if record.start_time else None,
            "created_at": record.created_at.isoformat() if record.created_at else None,
        }
        for record in normalize_transactions(docs)
    ]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def run_ingestion(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> IngestionResult:
    """
    Execute the ingestion pipeline.

    Steps:
    - Read the raw space and history document exports.
    - Normalize legacy field names into the canonical schema.
    - Persist both as CSV for the space and history feeds.
    """
    config.raw_data_dir.mkdir(parents=True, exist_ok=True)
    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    spaces = _spaces_frame(_read_documents(config.raw_data_dir / config.raw_spaces_filename))
    history = _history_frame(_read_documents(config.raw_data_dir / config.raw_history_filename))

    spaces.to_csv(config.spaces_path, index=False)
    history.to_csv(config.history_path, index=False)
    return IngestionResult(spaces_path=config.spaces_path, history_path=config.history_path)


if __name__ == "__main__":
    result = run_ingestion()
    print(f"Ingestion complete. Spaces: {result.spaces_path}, history: {result.history_path}")
