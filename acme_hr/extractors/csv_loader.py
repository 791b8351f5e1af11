# acme_hr/extractors/csv_loader.py
import logging
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

logger = logging.getLogger(__name__)


def load_csv_rows(path: Union[str, Path]) -> List[Dict[str, str]]:
    """
    Read a comma separated file with a header row into a list of dicts.
    Every cell is kept as text and empty cells come back as "".
    A missing or empty file yields an empty list; parse errors propagate.
    """
    path = Path(path)
    logger.debug(f"Reading CSV from {path}")
    if not path.exists():
        logger.warning(f"CSV file not found: {path}")
        return []

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except pd.errors.EmptyDataError:
        logger.warning(f"CSV file is empty: {path}")
        return []

    df.columns = [str(c).strip() for c in df.columns]
    rows = df.to_dict(orient="records")
    logger.debug(f"Finished reading {path}: {len(rows)} row(s)")
    return rows
