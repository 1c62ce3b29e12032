import io
import logging
import math
from typing import Any, Dict, List, Tuple

import pandas as pd

from app.core.config import settings
from app.models.errors import SpreadsheetReadError
from app.models.importing import CellValue, PreviewData

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xlsm")
# Needs the xlrd engine, which is not installed
LEGACY_EXCEL_EXTENSIONS = (".xls",)

def read_upload(upload_file) -> bytes:
    """
    Reads an uploaded file into memory in 1 MB chunks, refusing anything
    over MAX_UPLOAD_SIZE_MB.
    """
    limit = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    size = 0
    chunks = []
    for chunk in iter(lambda: upload_file.file.read(1024 * 1024), b""):
        size += len(chunk)
        if size > limit:
            raise SpreadsheetReadError(
                f"File too large. Max size is {settings.MAX_UPLOAD_SIZE_MB} MB."
            )
        chunks.append(chunk)
    return b"".join(chunks)

def _to_cell(value: Any) -> CellValue:
    """Converts a pandas/numpy cell into a plain JSON-friendly scalar."""
    if hasattr(value, "item"):
        # numpy scalars
        value = value.item()
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)

def load_frame(file_name: str, content: bytes) -> pd.DataFrame:
    """
    Parses a CSV or Excel file. The first row is the header.
    Everything is read as text so that codes like "007" keep their zeros.
    """
    if not content:
        raise SpreadsheetReadError("The uploaded file is empty.")

    name = (file_name or "").lower()
    if name.endswith(LEGACY_EXCEL_EXTENSIONS):
        raise SpreadsheetReadError(
            "Legacy .xls files are not supported. Save the file as .xlsx or CSV."
        )

    try:
        if name.endswith(EXCEL_EXTENSIONS):
            df = pd.read_excel(io.BytesIO(content), dtype=str)
        else:
            df = pd.read_csv(
                io.BytesIO(content),
                dtype=str,
                skip_blank_lines=False,
                encoding="utf-8-sig",
                encoding_errors="replace",
            )
    except Exception as e:
        logger.warning("Could not parse %s: %s", file_name, e)
        raise SpreadsheetReadError(
            "Failed to read file. Make sure it's a valid Excel or CSV."
        ) from e

    # Drop rows where every cell is empty; the index keeps their line numbers
    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    return df

def frame_rows(df: pd.DataFrame) -> List[Dict[str, CellValue]]:
    return [
        {col: _to_cell(val) for col, val in zip(df.columns, row)}
        for row in df.itertuples(index=False, name=None)
    ]

def read_rows(file_name: str, content: bytes) -> Tuple[List[str], List[Tuple[int, Dict[str, CellValue]]]]:
    """
    Returns the header plus every data row paired with its spreadsheet row
    number (the header is row 1, so the first data row is row 2).
    """
    df = load_frame(file_name, content)
    numbered = [(int(idx) + 2, row) for idx, row in zip(df.index, frame_rows(df))]
    return list(df.columns), numbered

def build_preview(file_name: str, content: bytes, limit: int = None) -> PreviewData:
    limit = settings.PREVIEW_ROWS if limit is None else limit
    df = load_frame(file_name, content)

    return PreviewData(
        columns=list(df.columns),
        preview=frame_rows(df.head(limit)),
        total_rows=len(df),
    )
