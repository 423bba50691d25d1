"""Column type inference from the first row of a dataset.

Only row 0 is inspected.  A column whose first value is a number is a
``"number"`` column even if later rows hold text; filters tolerate that
by excluding values that don't coerce.
"""
from typing import Dict, List

from .data_model import Dataset

NUMBER = "number"
STRING = "string"
BOOLEAN = "boolean"


def infer_column_type(dataset: Dataset, column: str) -> str:
    if not dataset.rows:
        return STRING
    value = dataset.rows[0].get(column)
    # bool first: it's an int subclass
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, (int, float)):
        return NUMBER
    return STRING


def column_types(dataset: Dataset) -> Dict[str, str]:
    return {c: infer_column_type(dataset, c) for c in dataset.columns}


def numeric_columns(dataset: Dataset) -> List[str]:
    return [c for c in dataset.columns if infer_column_type(dataset, c) == NUMBER]


def text_columns(dataset: Dataset) -> List[str]:
    """Columns whose first value is a string (candidate grouping keys)."""
    if not dataset.rows:
        return []
    first = dataset.rows[0]
    return [c for c in dataset.columns if isinstance(first.get(c), str)]
