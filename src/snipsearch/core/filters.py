"""Structured filter evaluation.

Filters are a conjunction: an item survives only if every clause holds.
Clause evaluation never raises. Unknown operators pass, and comparisons
between incompatible types fail the clause.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Sequence, TypeVar

from snipsearch.core.fields import resolve_field, to_text
from snipsearch.core.schemas import Filter, FilterOperator, Snippet

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Snippet)


def _as_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def _equals(actual: Any, expected: Any) -> bool:
    if actual == expected:
        return True
    # Non-string fields compare against string operands by their text form
    if isinstance(expected, str) and actual is not None and not isinstance(actual, str):
        return to_text(actual) == expected
    return False


def _text_op(check: Callable[[str, str], bool]) -> Callable[[Any, Any], bool]:
    def _evaluate(actual: Any, expected: Any) -> bool:
        if expected is None:
            return False
        return check(to_text(actual).lower(), str(expected).lower())
    return _evaluate


def _greater_than(actual: Any, expected: Any) -> bool:
    return actual is not None and actual > expected


def _less_than(actual: Any, expected: Any) -> bool:
    return actual is not None and actual < expected


def _between(actual: Any, expected: Any) -> bool:
    if actual is None:
        return False
    if isinstance(expected, Mapping):
        low, high = expected.get("min"), expected.get("max")
    elif _as_collection(expected) and len(expected) == 2:
        low, high = tuple(expected)
    else:
        return False
    return low <= actual <= high


def _member(actual: Any, expected: Any) -> bool:
    if _as_collection(actual):
        return any(element in expected for element in actual)
    return actual in expected


def _in(actual: Any, expected: Any) -> bool:
    return _as_collection(expected) and _member(actual, expected)


def _not_in(actual: Any, expected: Any) -> bool:
    return _as_collection(expected) and not _member(actual, expected)


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    FilterOperator.EQUALS.value: _equals,
    FilterOperator.CONTAINS.value: _text_op(lambda a, e: e in a),
    FilterOperator.STARTS_WITH.value: _text_op(lambda a, e: a.startswith(e)),
    FilterOperator.ENDS_WITH.value: _text_op(lambda a, e: a.endswith(e)),
    FilterOperator.GREATER_THAN.value: _greater_than,
    FilterOperator.LESS_THAN.value: _less_than,
    FilterOperator.BETWEEN.value: _between,
    FilterOperator.IN.value: _in,
    FilterOperator.NOT_IN.value: _not_in,
    FilterOperator.EXISTS.value: lambda actual, _: actual is not None,
    FilterOperator.NOT_EXISTS.value: lambda actual, _: actual is None,
}


def evaluate_filter(item: Any, clause: Filter) -> bool:
    """Evaluate one clause against item."""
    operator = OPERATORS.get(clause.operator)
    if operator is None:
        logger.debug(f"Unknown filter operator '{clause.operator}', treating as pass")
        return True

    actual = resolve_field(item, clause.field)
    try:
        return bool(operator(actual, clause.value))
    except (TypeError, ValueError) as e:
        logger.debug(
            f"Filter {clause.field} {clause.operator} {clause.value!r} "
            f"not comparable with {actual!r}: {e}"
        )
        return False


def apply_filters(results: Sequence[T], filters: Sequence[Filter]) -> List[T]:
    """Keep the items that satisfy every filter clause, preserving order."""
    if not filters:
        return list(results)
    return [item for item in results if all(evaluate_filter(item, clause) for clause in filters)]
