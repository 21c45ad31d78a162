"""Metadata filter predicates.

Filters are small immutable trees evaluated against a document's metadata
mapping. Leaves test one field (``Eq``, ``In``, ``Range``); ``And``, ``Or``
and ``Not`` combine them.

Matching rules:

* A missing field never satisfies a leaf.
* On a list-valued field a leaf matches if any element satisfies it.
* Booleans only equal booleans, so ``Eq("flag", 1)`` does not match ``True``.
* ``Range`` compares numbers with numbers and strings with strings. Any other
  pairing is simply a non-match.

The same trees can be written as plain mappings in the operator style used by
document databases and most vector store APIs, and converted with
``parse_filter``:

    {"genre": "news", "year": {"$gte": 2020}, "$or": [{"lang": "en"}, {"lang": "fr"}]}
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from .exceptions import InvalidFilterError

_MISSING = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _values_equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def _field_values(metadata: Mapping[str, Any], field: str) -> list[Any] | None:
    value = metadata.get(field, _MISSING)
    if value is _MISSING:
        return None
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


class Predicate(ABC):
    """A node in a filter tree."""

    @abstractmethod
    def matches(self, metadata: Mapping[str, Any]) -> bool:
        """Evaluate this predicate against ``metadata``."""
        ...


@dataclass(frozen=True)
class Eq(Predicate):
    """Field equals a value."""

    field: str
    value: Any

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        values = _field_values(metadata, self.field)
        if values is None:
            return False
        return any(_values_equal(v, self.value) for v in values)


@dataclass(frozen=True)
class In(Predicate):
    """Field equals one of several values."""

    field: str
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        # Accept any iterable but store a tuple so the node stays hashable
        object.__setattr__(self, "values", tuple(self.values))

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        values = _field_values(metadata, self.field)
        if values is None:
            return False
        return any(_values_equal(v, candidate) for v in values for candidate in self.values)


@dataclass(frozen=True)
class Range(Predicate):
    """Field lies within bounds. At least one bound is required."""

    field: str
    gt: Any = None
    gte: Any = None
    lt: Any = None
    lte: Any = None

    def __post_init__(self) -> None:
        bounds = [b for b in (self.gt, self.gte, self.lt, self.lte) if b is not None]
        if not bounds:
            raise InvalidFilterError(
                f"Range on '{self.field}' needs at least one bound",
                context={"field": self.field},
            )
        for bound in bounds:
            if not (_is_number(bound) or isinstance(bound, str)):
                raise InvalidFilterError(
                    f"Range bound must be a number or string, got {type(bound).__name__}",
                    context={"field": self.field, "bound": repr(bound)},
                )

    @staticmethod
    def _comparable(value: Any, bound: Any) -> bool:
        if _is_number(value) and _is_number(bound):
            return True
        return isinstance(value, str) and isinstance(bound, str)

    def _in_range(self, value: Any) -> bool:
        checks = (
            (self.gt, lambda v, b: v > b),
            (self.gte, lambda v, b: v >= b),
            (self.lt, lambda v, b: v < b),
            (self.lte, lambda v, b: v <= b),
        )
        for bound, compare in checks:
            if bound is None:
                continue
            if not self._comparable(value, bound) or not compare(value, bound):
                return False
        return True

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        values = _field_values(metadata, self.field)
        if values is None:
            return False
        return any(self._in_range(v) for v in values)


@dataclass(frozen=True)
class And(Predicate):
    """All children match. An empty ``And`` matches everything."""

    predicates: tuple[Predicate, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "predicates", tuple(self.predicates))

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        return all(p.matches(metadata) for p in self.predicates)


@dataclass(frozen=True)
class Or(Predicate):
    """Any child matches. An empty ``Or`` matches nothing."""

    predicates: tuple[Predicate, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "predicates", tuple(self.predicates))

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        return any(p.matches(metadata) for p in self.predicates)


@dataclass(frozen=True)
class Not(Predicate):
    """Child does not match."""

    predicate: Predicate

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        return not self.predicate.matches(metadata)


FilterLike: TypeAlias = Predicate | Mapping[str, Any]

_RANGE_OPERATORS = {"$gt": "gt", "$gte": "gte", "$lt": "lt", "$lte": "lte"}
_SCALAR_TYPES = (str, int, float, bool, type(None))


def _require_list(operator: str, operand: Any) -> list[Any]:
    if not isinstance(operand, list | tuple):
        raise InvalidFilterError(
            f"Operator {operator} expects a list, got {type(operand).__name__}",
            context={"operator": operator},
        )
    return list(operand)


def _require_scalar(operator: str, operand: Any) -> Any:
    if not isinstance(operand, _SCALAR_TYPES):
        raise InvalidFilterError(
            f"Operator {operator} expects a scalar, got {type(operand).__name__}",
            context={"operator": operator},
        )
    return operand


def _parse_field(field: str, condition: Any) -> Predicate:
    if not isinstance(condition, Mapping):
        if isinstance(condition, list | tuple):
            raise InvalidFilterError(
                f"Use $in to match '{field}' against several values",
                context={"field": field},
            )
        return Eq(field, _require_scalar("$eq", condition))

    if not condition:
        raise InvalidFilterError(f"Empty condition for '{field}'", context={"field": field})

    parts: list[Predicate] = []
    range_bounds: dict[str, Any] = {}
    for operator, operand in condition.items():
        if operator == "$eq":
            parts.append(Eq(field, _require_scalar(operator, operand)))
        elif operator == "$ne":
            parts.append(Not(Eq(field, _require_scalar(operator, operand))))
        elif operator == "$in":
            parts.append(In(field, tuple(_require_list(operator, operand))))
        elif operator == "$nin":
            parts.append(Not(In(field, tuple(_require_list(operator, operand)))))
        elif operator in _RANGE_OPERATORS:
            range_bounds[_RANGE_OPERATORS[operator]] = operand
        else:
            raise InvalidFilterError(
                f"Unknown filter operator: {operator}",
                context={"field": field, "operator": operator},
            )

    if range_bounds:
        parts.append(Range(field, **range_bounds))
    return parts[0] if len(parts) == 1 else And(tuple(parts))


def parse_filter(mapping: Mapping[str, Any]) -> Predicate:
    """Build a predicate tree from an operator-style mapping.

    Args:
        mapping: Mapping of field conditions and ``$and``/``$or``/``$not`` keys.
            Several keys are combined with AND.

    Returns:
        The equivalent predicate.

    Raises:
        InvalidFilterError: On unknown operators or malformed operands.
    """
    if not isinstance(mapping, Mapping):
        raise InvalidFilterError(
            f"Filter must be a mapping, got {type(mapping).__name__}",
        )

    parts: list[Predicate] = []
    for key, condition in mapping.items():
        if key == "$and":
            parts.append(And(tuple(parse_filter(c) for c in _require_list(key, condition))))
        elif key == "$or":
            parts.append(Or(tuple(parse_filter(c) for c in _require_list(key, condition))))
        elif key == "$not":
            parts.append(Not(parse_filter(condition)))
        elif key.startswith("$"):
            raise InvalidFilterError(f"Unknown logical operator: {key}", context={"operator": key})
        else:
            parts.append(_parse_field(key, condition))

    if len(parts) == 1:
        return parts[0]
    return And(tuple(parts))


def coerce_filter(filter: FilterLike | None) -> Predicate | None:
    """Normalize a predicate, mapping or None into a predicate or None."""
    if filter is None:
        return None
    if isinstance(filter, Predicate):
        return filter
    if isinstance(filter, Mapping):
        return parse_filter(filter) if filter else None
    raise InvalidFilterError(f"Unsupported filter type: {type(filter).__name__}")


def matches(metadata: Mapping[str, Any], predicate: FilterLike | None) -> bool:
    """Return True if ``metadata`` satisfies ``predicate`` (None matches all)."""
    resolved = coerce_filter(predicate)
    if resolved is None:
        return True
    return resolved.matches(metadata)
