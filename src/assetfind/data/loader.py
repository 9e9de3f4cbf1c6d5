from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from ..config import DATA_DIR
from ..logger import get_logger
from .records import AssetRecord, parse_datetime, record_from_document

logger = get_logger("data.loader")

_DATE_COLUMNS = ("uploadedAt", "createdAt", "created_at")


def load_catalog(filename: Union[str, Path] = "catalog.json", data_dir: Optional[str] = None) -> pd.DataFrame:
    """Catalog export (JSON, CSV or PKL) as a DataFrame, one row per asset."""
    p = Path(filename)
    if not p.is_absolute():
        p = Path(data_dir or DATA_DIR) / p
    if not p.exists():
        logger.error(f"Catalog export not found at {p}")
        return pd.DataFrame()

    if p.suffix == ".pkl":
        df = pd.read_pickle(p)
    elif p.suffix == ".csv":
        df = pd.read_csv(p)
    else:
        df = pd.read_json(p, convert_dates=False, dtype=False)

    for col in _DATE_COLUMNS:
        if col in df.columns:
            # same parsing as record_from_document: extended JSON, ISO strings, epoch ms
            df[col] = df[col].map(parse_datetime)

    logger.info(f"Loaded catalog -> {len(df)} rows from {p}")
    return df


def records_from_frame(df: pd.DataFrame) -> List[AssetRecord]:
    """Normalize DataFrame rows into AssetRecords, skipping rows without an id."""
    if df.empty:
        return []
    clean = df.astype(object).where(pd.notna(df), None)
    records: List[AssetRecord] = []
    skipped = 0
    for doc in clean.to_dict(orient="records"):
        try:
            records.append(record_from_document(doc))
        except ValueError:
            skipped += 1
    if skipped:
        logger.warning(f"Skipped {skipped} catalog rows without an id")
    return records
