"""
Upload parsing: CSV, JSON arrays and Excel workbooks into a ``Dataset``.

The CSV reader is intentionally simple.  Lines are split on bare commas,
so a quoted field containing a comma spills into the next column; rows
shorter than the header are dropped rather than padded.
"""
import io
import json
import logging

import pandas as pd
import requests

from . import config
from .data_model import Dataset
from .errors import (EmptyDataError, InvalidFormatError, ParseFailureError,
                     ReadFailureError)
from .values import parse_scalar, to_jsonable

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xls")
JSON_MIME = "application/json"


# ================== READING ==================
def read_upload(uploaded) -> bytes:
    """Read a file-like upload to completion (mobile-safe: rewinds before and after)."""
    if uploaded is None:
        raise ReadFailureError("No file provided")
    try:
        uploaded.seek(0)
        raw = uploaded.read()
        uploaded.seek(0)
    except (OSError, ValueError) as exc:
        raise ReadFailureError("Error reading file") from exc
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    return raw


def decode_text(content) -> str:
    if isinstance(content, str):
        return content
    if not isinstance(content, (bytes, bytearray)):
        raise ReadFailureError("File content is neither text nor bytes")
    for enc in ("utf-8-sig", "latin-1"):
        try:
            return bytes(content).decode(enc)
        except UnicodeDecodeError:
            continue
    raise ReadFailureError("Could not decode file as text")


def is_excel(name: str) -> bool:
    return (name or "").lower().endswith(EXCEL_EXTENSIONS)


def is_json(name: str, mime_type: str = "") -> bool:
    return mime_type == JSON_MIME or (name or "").lower().endswith(".json")


# ================== FORMATS ==================
def _unquote(token: str) -> str:
    """Strip one leading and one trailing double quote."""
    if token.startswith('"'):
        token = token[1:]
    if token.endswith('"'):
        token = token[:-1]
    return token


def parse_csv_text(text: str, source: str = "") -> Dataset:
    lines = [ln for ln in text.split("\n") if ln.strip() != ""]
    if len(lines) < 2:
        return Dataset((), source)

    headers = [_unquote(h.strip()) for h in lines[0].split(",")]
    rows = []
    dropped = 0
    for line in lines[1:]:
        fields = line.split(",")
        if len(fields) < len(headers):
            dropped += 1
            continue
        rows.append({h: parse_scalar(_unquote(fields[i].strip())) for i, h in enumerate(headers)})

    if dropped:
        logger.debug("Dropped %d CSV line(s) shorter than the %d-column header", dropped, len(headers))
    return Dataset(tuple(rows), source)


def parse_json_text(text: str, source: str = "") -> Dataset:
    try:
        obj = json.loads(text)
    except ValueError as exc:
        raise InvalidFormatError("Invalid JSON file") from exc
    if not isinstance(obj, list):
        raise InvalidFormatError("JSON must be an array of objects")
    for i, item in enumerate(obj):
        if not isinstance(item, dict):
            raise ParseFailureError(f"JSON array element {i} is not an object")
    return Dataset(tuple(obj), source)


def frame_to_rows(df: pd.DataFrame):
    """DataFrame -> list of plain row dicts (NaN -> None, numpy scalars -> Python)."""
    df = df.rename(columns=lambda c: str(c))
    return [{k: to_jsonable(v) for k, v in rec.items()} for rec in df.to_dict(orient="records")]


def parse_workbook(raw: bytes, source: str = "") -> Dataset:
    name = (source or "").lower()
    if name.endswith(".xlsx") and raw[:2] != b"PK":
        raise InvalidFormatError("This .xlsx isn't a valid Excel file. Try CSV instead.")
    try:
        engine = "openpyxl" if name.endswith(".xlsx") else "xlrd"
        df = pd.read_excel(io.BytesIO(raw), sheet_name=0, engine=engine)
    except Exception as exc:
        raise InvalidFormatError(
            "Failed to parse Excel file. Please ensure it is a valid .xlsx or .xls file."
        ) from exc
    rows = frame_to_rows(df)
    if not rows:
        raise EmptyDataError("Excel sheet appears to be empty")
    return Dataset(tuple(rows), source)


# ================== DISPATCH ==================
def parse_upload(name: str, mime_type: str, content) -> Dataset:
    """Parse raw upload content into a Dataset, choosing the format from name/MIME type."""
    if is_excel(name):
        if isinstance(content, str):
            raise ReadFailureError("Excel content must be read as bytes")
        ds = parse_workbook(bytes(content), name)
    elif is_json(name, mime_type):
        ds = parse_json_text(decode_text(content), name)
    else:
        ds = parse_csv_text(decode_text(content), name)
    logger.info("Parsed %s: %d rows x %d cols", name, len(ds), len(ds.columns))
    return ds


def pasted_source(text: str):
    """(file name, MIME type) for pasted text: JSON if it looks like JSON, else CSV."""
    t = text.strip()
    if t.startswith("[") or t.startswith("{"):
        return "raw_input.json", JSON_MIME
    return "raw_input.csv", "text/csv"


def parse_pasted_text(text: str) -> Dataset:
    name, mime = pasted_source(text)
    return parse_upload(name, mime, text.strip())


def fetch_sample_csv(url: str = config.SAMPLE_CSV_URL):
    """Download a raw CSV (e.g. the sample dataset on GitHub); returns (file name, text)."""
    try:
        r = requests.get(url, timeout=config.REQUEST_TIMEOUT)
        r.raise_for_status()
    except requests.RequestException as exc:
        raise ReadFailureError(f"Could not load sample CSV from {url}") from exc
    return url.rsplit("/", 1)[-1] or "sample.csv", r.text


def load_sample_dataset(url: str = config.SAMPLE_CSV_URL) -> Dataset:
    name, text = fetch_sample_csv(url)
    return parse_csv_text(text, name)
