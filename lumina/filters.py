"""
Row filtering with per-column operator menus.

Predicates in a ``FilterSet`` are ANDed.  Evaluation never raises: a
missing value or a value that can't be coerced for a numeric comparison
simply fails the predicate and the row is dropped.  A blank filter value
compares as 0, so a freshly added numeric filter keeps the positive rows.
"""
import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple
from uuid import uuid4

from .data_model import Dataset, Row
from .inference import NUMBER, infer_column_type
from .values import loosely_equal, to_number, to_text

logger = logging.getLogger(__name__)

NUMERIC_OPERATORS = (">", "<", ">=", "<=", "equals", "!=")
TEXT_OPERATORS = ("contains", "equals", "!=", "starts_with", "ends_with")

_COMPARISONS = {
    ">": lambda a, b: a > b,
    "<": lambda a, b: a < b,
    ">=": lambda a, b: a >= b,
    "<=": lambda a, b: a <= b,
}


def operators_for_type(column_type: str) -> Tuple[str, ...]:
    return NUMERIC_OPERATORS if column_type == NUMBER else TEXT_OPERATORS


def operators_for_column(dataset: Dataset, column: str) -> Tuple[str, ...]:
    return operators_for_type(infer_column_type(dataset, column))


@dataclass(frozen=True)
class FilterPredicate:
    id: str
    column: str
    operator: str
    value: str = ""


def _filter_number(text: str):
    """Numeric form of a filter value; a blank value counts as 0."""
    return 0.0 if not text.strip() else to_number(text)


def _equals(value, text: str) -> bool:
    if not text.strip() and not isinstance(value, str):
        return to_number(value) == 0.0
    return loosely_equal(value, text) or to_text(value).lower() == text.lower()


def matches(row: Row, predicate: FilterPredicate) -> bool:
    """True if ``row`` passes ``predicate``."""
    value = row.get(predicate.column)
    if value is None:
        return False

    op = predicate.operator
    value_text = to_text(value).lower()
    filter_text = predicate.value.lower()

    if op == "contains":
        return filter_text in value_text
    if op == "equals":
        return _equals(value, predicate.value)
    if op == "!=":
        return not _equals(value, predicate.value)
    if op == "starts_with":
        return value_text.startswith(filter_text)
    if op == "ends_with":
        return value_text.endswith(filter_text)
    if op in _COMPARISONS:
        left, right = to_number(value), _filter_number(predicate.value)
        if left is None or right is None:
            return False
        return _COMPARISONS[op](left, right)

    logger.debug("Unknown filter operator %r on column %r", op, predicate.column)
    return False


def apply_filters(dataset: Dataset, filters) -> Dataset:
    """Rows satisfying every predicate, in input order (same row objects)."""
    predicates = list(filters)
    if not predicates:
        return dataset
    return dataset.derive(r for r in dataset.rows if all(matches(r, p) for p in predicates))


# ================== FILTER SET STATE ==================
@dataclass(frozen=True)
class FilterSet:
    """Ordered, immutable list of predicates; every edit returns a new FilterSet."""
    predicates: Tuple[FilterPredicate, ...] = ()

    def __iter__(self):
        return iter(self.predicates)

    def __len__(self):
        return len(self.predicates)

    def get(self, filter_id: str) -> Optional[FilterPredicate]:
        return next((p for p in self.predicates if p.id == filter_id), None)

    def add(self, dataset: Dataset) -> "FilterSet":
        """Append a blank predicate on the first column (no-op without columns)."""
        columns = dataset.columns
        if not columns:
            return self
        column = columns[0]
        predicate = FilterPredicate(
            id=uuid4().hex[:9],
            column=column,
            operator=operators_for_column(dataset, column)[0],
        )
        return FilterSet(self.predicates + (predicate,))

    def remove(self, filter_id: str) -> "FilterSet":
        return FilterSet(tuple(p for p in self.predicates if p.id != filter_id))

    def update(self, filter_id: str, dataset: Dataset, *, column=None, operator=None, value=None) -> "FilterSet":
        """Edit one predicate. A new column resets the operator and clears the value."""
        updated = []
        for p in self.predicates:
            if p.id == filter_id:
                if operator is not None:
                    p = replace(p, operator=operator)
                if value is not None:
                    p = replace(p, value=value)
                if column is not None and column != p.column:
                    p = replace(p, column=column, operator=operators_for_column(dataset, column)[0], value="")
            updated.append(p)
        return FilterSet(tuple(updated))


Subscriber = Callable[[Dataset], None]


class FilteredView:
    """Source dataset + filter set; republishes the filtered rows on every change."""

    def __init__(self, dataset: Dataset = Dataset(), filters: FilterSet = FilterSet()):
        self._dataset = dataset
        self._filters = filters
        self._subscribers: List[Subscriber] = []
        self._result = apply_filters(dataset, filters)

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def filters(self) -> FilterSet:
        return self._filters

    @property
    def result(self) -> Dataset:
        return self._result

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)
        callback(self._result)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def set_dataset(self, dataset: Dataset):
        self._dataset = dataset
        self._publish()

    def set_filters(self, filters: FilterSet):
        self._filters = filters
        self._publish()

    def _publish(self):
        self._result = apply_filters(self._dataset, self._filters)
        for callback in list(self._subscribers):
            callback(self._result)
