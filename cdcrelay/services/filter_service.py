"""
Column condition evaluation for operation filters
"""

import operator
from typing import Dict, Any, Callable, List

from ..exceptions import FilterError


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def evaluate(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        try:
            return bool(op(actual, expected))
        except TypeError:
            # Mismatched column and literal types never satisfy an ordering
            return False
    return evaluate


def _in(actual: Any, expected: Any) -> bool:
    return actual in expected


def _prefix(actual: Any, expected: Any) -> bool:
    return isinstance(actual, str) and actual.startswith(expected)


class FilterService:
    """Evaluates declarative conditions against a record's column values.

    Conditions look like ``{"status": {"eq": "active"}, "id": {"gt": 2}}``.
    Fields are AND-ed; a bare value means equality. ``and``/``or`` take a list
    of conditions, ``not`` takes one.
    """

    COMPARISONS: Dict[str, Callable[[Any, Any], bool]] = {
        "eq": operator.eq,
        "ne": operator.ne,
        "gt": _compare(operator.gt),
        "gte": _compare(operator.ge),
        "lt": _compare(operator.lt),
        "lte": _compare(operator.le),
        "in": _in,
        "prefix": _prefix,
    }
    LOGICAL = {"and", "or", "not"}

    @property
    def supported_operations(self):
        return set(self.COMPARISONS) | self.LOGICAL

    def apply_filter(self, data: Dict[str, Any], filter_config: Dict[str, Any]) -> bool:
        """
        Apply a condition to column values

        Args:
            data: Column name to value
            filter_config: Condition dictionary

        Returns:
            bool: True if data satisfies the condition (an empty condition always does)

        Raises:
            FilterError: If the condition is malformed
        """
        if not filter_config:
            return True
        try:
            return self._evaluate(data, filter_config)
        except FilterError:
            raise
        except Exception as e:
            raise FilterError(f"Error applying filter: {e}")

    def _evaluate(self, data: Dict[str, Any], condition: Dict[str, Any]) -> bool:
        for key, value in condition.items():
            if key == "and":
                result = all(self._evaluate(data, item) for item in value)
            elif key == "or":
                result = any(self._evaluate(data, item) for item in value)
            elif key == "not":
                result = not self._evaluate(data, value)
            else:
                result = self._evaluate_field(data, key, value)
            if not result:
                return False
        return True

    def _evaluate_field(self, data: Dict[str, Any], field: str, expected: Any) -> bool:
        actual = data.get(field)
        if isinstance(expected, dict) and len(expected) == 1:
            op_key, op_value = next(iter(expected.items()))
            if op_key in self.COMPARISONS:
                return self.COMPARISONS[op_key](actual, op_value)
        return actual == expected

    def validate_filter_config(self, filter_config: Dict[str, Any]) -> bool:
        """Validate a condition, raising FilterError when it is malformed"""
        if not filter_config:
            return True
        if not isinstance(filter_config, dict):
            raise FilterError("Invalid filter configuration: condition must be a dictionary")
        self._validate(filter_config, [])
        return True

    def _validate(self, condition: Dict[str, Any], path: List[str]) -> None:
        for key, value in condition.items():
            where = ".".join(path + [key])
            if key in ("and", "or"):
                if not isinstance(value, list):
                    raise FilterError(f"Invalid filter configuration: '{where}' requires a list of conditions")
                for item in value:
                    if not isinstance(item, dict):
                        raise FilterError(f"Invalid filter configuration: each condition in '{where}' must be a dictionary")
                    self._validate(item, path + [key])
            elif key == "not":
                if not isinstance(value, dict):
                    raise FilterError(f"Invalid filter configuration: '{where}' requires a dictionary condition")
                self._validate(value, path + [key])
            elif key in self.COMPARISONS:
                raise FilterError(f"Invalid filter configuration: '{where}' must be nested under a column name")
            elif isinstance(value, dict) and len(value) == 1:
                op_key, op_value = next(iter(value.items()))
                if op_key == "in" and not isinstance(op_value, (list, tuple, set)):
                    raise FilterError(f"Invalid filter configuration: '{where}.in' requires a list")
                if op_key == "prefix" and not isinstance(op_value, str):
                    raise FilterError(f"Invalid filter configuration: '{where}.prefix' requires a string")
