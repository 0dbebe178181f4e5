"""
Transaction log models for the CDC relay
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from ..exceptions import ValidationError


class OperationType(Enum):
    """Kinds of record operations inside a transaction"""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, order=True)
class CommitPosition:
    """Position of a committed transaction in the log.

    Ordering and equality only look at ``commit_id``; ``token`` is an opaque
    continuation value owned by the log source.
    """
    commit_id: int = 0
    token: Any = field(default=None, compare=False)

    def __post_init__(self):
        if isinstance(self.commit_id, bool) or not isinstance(self.commit_id, int):
            raise ValidationError(f"Commit id must be an integer, got: {self.commit_id!r}")
        if self.commit_id < 0:
            raise ValidationError(f"Commit id must not be negative, got: {self.commit_id}")


@dataclass(frozen=True)
class ColumnUpdate:
    """Single column value of a created or updated row"""
    name: str
    value: Any = None

    def __post_init__(self):
        if not self.name:
            raise ValidationError("Column name is required")


def _to_columns(columns) -> Tuple[ColumnUpdate, ...]:
    if isinstance(columns, dict):
        return tuple(ColumnUpdate(name, value) for name, value in columns.items())
    return tuple(columns or ())


@dataclass(frozen=True)
class CreateRecord:
    """Row inserted by a transaction"""
    table: str
    columns: Tuple[ColumnUpdate, ...] = ()

    def __post_init__(self):
        if not self.table:
            raise ValidationError("Table is required")
        object.__setattr__(self, "columns", _to_columns(self.columns))

    @property
    def operation(self) -> OperationType:
        return OperationType.CREATE

    def column_values(self) -> Dict[str, Any]:
        """Columns as a fresh dictionary"""
        return {column.name: column.value for column in self.columns}


@dataclass(frozen=True)
class UpdateRecord:
    """Row modified by a transaction"""
    table: str
    key: Any = None
    columns: Tuple[ColumnUpdate, ...] = ()

    def __post_init__(self):
        if not self.table:
            raise ValidationError("Table is required")
        object.__setattr__(self, "columns", _to_columns(self.columns))

    @property
    def operation(self) -> OperationType:
        return OperationType.UPDATE

    def column_values(self) -> Dict[str, Any]:
        """Columns as a fresh dictionary"""
        return {column.name: column.value for column in self.columns}


@dataclass(frozen=True)
class DeleteRecord:
    """Row removed by a transaction, identified by table and key only"""
    table: str
    key: Any = None

    def __post_init__(self):
        if not self.table:
            raise ValidationError("Table is required")

    @property
    def operation(self) -> OperationType:
        return OperationType.DELETE

    def column_values(self) -> Dict[str, Any]:
        return {}


Record = Union[CreateRecord, UpdateRecord, DeleteRecord]


@dataclass
class Transaction:
    """Committed unit of change as read from the log"""
    creates: List[CreateRecord] = field(default_factory=list)
    updates: List[UpdateRecord] = field(default_factory=list)
    deletes: List[DeleteRecord] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.creates or self.updates or self.deletes)

    def record_count(self) -> int:
        return len(self.creates) + len(self.updates) + len(self.deletes)

    def tables(self) -> List[str]:
        """Distinct table names in log order"""
        seen = {}
        for record in (*self.creates, *self.updates, *self.deletes):
            seen.setdefault(record.table, None)
        return list(seen)


@dataclass
class LogReadResult:
    """Transaction together with the position it was committed at.

    ``position`` doubles as the continuation position for reopening the log
    right after this transaction.
    """
    transaction: Transaction
    position: CommitPosition

    @property
    def commit_id(self) -> int:
        return self.position.commit_id


def make_position(value: Optional[Union[int, CommitPosition]]) -> CommitPosition:
    """Coerce an int or None into a CommitPosition"""
    if isinstance(value, CommitPosition):
        return value
    return CommitPosition(commit_id=value or 0)
