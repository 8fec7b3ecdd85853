"""
Export utilities for crawled listing records.
"""
import logging
from dataclasses import fields
from typing import Iterable

import pandas as pd

from .models import ListingRecord

logger = logging.getLogger(__name__)

COLUMNS = [f.name for f in fields(ListingRecord)]


def records_to_frame(records: Iterable[ListingRecord]) -> pd.DataFrame:
    """DataFrame with one row per record, columns in ListingRecord field order."""
    rows = [r.to_dict() for r in records]
    return pd.DataFrame(rows, columns=COLUMNS)


def save_output_rows(records: Iterable[ListingRecord], out_path: str) -> int:
    """Save records to CSV or Excel file. Returns the number of rows written."""
    df = records_to_frame(records)
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)
    logger.info(f">>> Saved {len(df)} rows to {out_path}")
    return len(df)
