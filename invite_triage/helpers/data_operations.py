from __future__ import annotations

import json
import re
from io import StringIO
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from invite_triage.config.constants import REDACTED
from invite_triage.utils.logging import get_logger

logger = get_logger(__name__)

# Standalone 6-10 digit runs: OTPs, verification codes, account numbers
_CODE_PATTERN = re.compile(r"(?<!\d)\d{6,10}(?!\d)")


def sanitize_text(value: Optional[Any]) -> str:
    """Replace standalone 6-10 digit runs with the redaction placeholder."""
    if value is None:
        return ""
    return _CODE_PATTERN.sub(REDACTED, str(value))


class JsonManager:
    """Simple JSON I/O with pandas integration and atomic writes."""

    def __init__(self, encoding: str = "utf-8", indent: int = 2):
        self.encoding = encoding
        self.indent = indent

    def write(self, path: Path | str, data: Any) -> None:
        """Write data to JSON file atomically.

        DataFrames go through pandas (ISO dates, NaN -> null), anything else
        through json.
        """
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + ".tmp")

        if isinstance(data, pd.DataFrame):
            data.to_json(
                tmp, orient="records", indent=self.indent, force_ascii=False, date_format="iso"
            )
        else:
            tmp.write_text(
                json.dumps(data, indent=self.indent, ensure_ascii=False, default=str),
                encoding=self.encoding,
            )
        tmp.replace(p)

    def load_frame(self, path: Path | str) -> pd.DataFrame | None:
        """Load a JSON array of records as a DataFrame, None if the file does not exist."""
        p = Path(path)
        if not p.exists():
            return None
        text = p.read_text(encoding=self.encoding)
        if not text.strip():
            return pd.DataFrame()
        return pd.read_json(StringIO(text), orient="records", dtype=False, convert_dates=False)


__all__ = ["JsonManager", "sanitize_text"]
