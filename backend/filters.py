# filters.py — Filter-tree construction and evaluation
"""
Builders turn query intents (by foreign key, by status, by date range,
free-text search) into the record store's filter shapes. The evaluation half
is what a substitute store uses to answer those filters locally.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from record_store import GroupCondition, OrderBy, PagingInfo, WhereCondition, WhereGroup, WhereSubGroup

EQUAL_TO = "EqualTo"
CONTAINS = "Contains"
GREATER_OR_EQUAL = "GreaterThanOrEqualTo"
LESS_OR_EQUAL = "LessThanOrEqualTo"
NO_VALUE = "DoesNotHaveValue"

OPERATORS = (EQUAL_TO, CONTAINS, GREATER_OR_EQUAL, LESS_OR_EQUAL, NO_VALUE)


class UnsupportedOperator(ValueError):
    pass


# ============================================================
# BUILDERS
# ============================================================

def equals(field_name: str, *values: Any) -> WhereCondition:
    return WhereCondition(field_name=field_name, operator=EQUAL_TO, value_list=list(values))


def contains(field_name: str, value: str) -> WhereCondition:
    return WhereCondition(field_name=field_name, operator=CONTAINS, value_list=[value])


def at_least(field_name: str, value: Any) -> WhereCondition:
    return WhereCondition(field_name=field_name, operator=GREATER_OR_EQUAL, value_list=[value])


def at_most(field_name: str, value: Any) -> WhereCondition:
    return WhereCondition(field_name=field_name, operator=LESS_OR_EQUAL, value_list=[value])


def has_no_value(field_name: str) -> WhereCondition:
    return WhereCondition(field_name=field_name, operator=NO_VALUE, value_list=[])


def any_contains(field_names: Sequence[str], term: str) -> WhereGroup:
    """OR-group matching ``term`` as a substring of any of ``field_names``"""
    return WhereGroup(
        operator="OR",
        sub_groups=[
            WhereSubGroup(
                conditions=[GroupCondition(field_name=name, operator=CONTAINS, value_list=[term])],
                operator="OR",
            )
            for name in field_names
        ],
    )


def order(field_name: str, descending: bool = False) -> OrderBy:
    return OrderBy(field_name=field_name, sort_type="DESC" if descending else "ASC")


# ============================================================
# EVALUATION
# ============================================================

def _normalise(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("Id", value.get("id"))
    return value


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _equal(left: Any, right: Any) -> bool:
    left, right = _normalise(left), _normalise(right)
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool) or isinstance(right, bool):
        return left == right
    l_num, r_num = _as_number(left), _as_number(right)
    if l_num is not None and r_num is not None:
        return l_num == r_num
    return str(left) == str(right)


def _compare(left: Any, right: Any) -> int:
    l_num, r_num = _as_number(left), _as_number(right)
    if l_num is not None and r_num is not None:
        return (l_num > r_num) - (l_num < r_num)
    l_str, r_str = str(left), str(right)
    return (l_str > r_str) - (l_str < r_str)


def _is_empty(value: Any) -> bool:
    value = _normalise(value)
    return value is None or value == "" or value == []


def check(value: Any, operator: str, values: Sequence[Any]) -> bool:
    """Evaluate one condition against a field value"""
    if operator == NO_VALUE:
        return _is_empty(value)
    if operator == EQUAL_TO:
        return any(_equal(value, v) for v in values)
    if _is_empty(value):
        return False
    if operator == CONTAINS:
        haystack = str(_normalise(value)).lower()
        return any(str(v).lower() in haystack for v in values if v is not None)
    if operator == GREATER_OR_EQUAL:
        return all(_compare(_normalise(value), v) >= 0 for v in values)
    if operator == LESS_OR_EQUAL:
        return all(_compare(_normalise(value), v) <= 0 for v in values)
    raise UnsupportedOperator(f"Unsupported operator: {operator}")


def _combine(operator: str, outcomes: Iterable[bool]) -> bool:
    outcomes = list(outcomes)
    if not outcomes:
        return True
    return any(outcomes) if operator.upper() == "OR" else all(outcomes)


def _group_matches(record: Dict[str, Any], group: WhereGroup) -> bool:
    return _combine(group.operator, (
        _combine(sub.operator, (
            check(record.get(c.field_name), c.operator, c.value_list) for c in sub.conditions
        ))
        for sub in group.sub_groups
    ))


def matches(
    record: Dict[str, Any],
    where: Optional[List[WhereCondition]] = None,
    where_groups: Optional[List[WhereGroup]] = None,
) -> bool:
    """True when ``record`` satisfies every condition and every group"""
    for condition in where or []:
        if not check(record.get(condition.field_name), condition.operator, condition.value_list):
            return False
    return all(_group_matches(record, group) for group in where_groups or [])


def sort_records(records: List[Dict[str, Any]], order_by: Optional[List[OrderBy]]) -> List[Dict[str, Any]]:
    """Stable multi-key sort; empty values sort last in either direction"""
    result = list(records)
    for key in reversed(order_by or []):
        filled = [r for r in result if not _is_empty(r.get(key.field_name))]
        empty = [r for r in result if _is_empty(r.get(key.field_name))]
        filled.sort(key=lambda r: _sort_key(r.get(key.field_name)), reverse=key.sort_type == "DESC")
        result = filled + empty
    return result


def _sort_key(value: Any):
    value = _normalise(value)
    number = _as_number(value)
    if number is not None:
        return (0, number, "")
    return (1, 0, str(value).lower())


def page(records: List[Dict[str, Any]], paging: Optional[PagingInfo]) -> List[Dict[str, Any]]:
    if paging is None:
        return records
    return records[paging.offset:paging.offset + paging.limit]
