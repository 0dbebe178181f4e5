"""
Pluggable per-operation filters for the CDC relay

An operation filter gets a last say on every create, update and delete that
survived table and position filtering. Returning True drops the record.
Records are frozen; filters must not try to change them. A single filter
instance serves the whole stream, so implementations must be stateless or
do their own locking.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, FrozenSet, Iterable, Optional

import structlog

from ..exceptions import FilterError
from ..models.config import OperationRuleConfig
from ..models.transaction import CreateRecord, UpdateRecord, DeleteRecord, OperationType
from .filter_service import FilterService


class OperationFilter(ABC):
    """Veto individual operations before they are sent to a destination"""

    @abstractmethod
    def filter_create(self, destination: str, record: CreateRecord) -> bool:
        """Return True to drop the create"""

    @abstractmethod
    def filter_update(self, destination: str, record: UpdateRecord) -> bool:
        """Return True to drop the update"""

    @abstractmethod
    def filter_delete(self, destination: str, record: DeleteRecord) -> bool:
        """Return True to drop the delete"""

    def filter_record(self, destination: str, record) -> bool:
        """Dispatch on the record's operation"""
        operation = record.operation
        if operation is OperationType.CREATE:
            return self.filter_create(destination, record)
        if operation is OperationType.UPDATE:
            return self.filter_update(destination, record)
        return self.filter_delete(destination, record)


class NullOperationFilter(OperationFilter):
    """Lets every operation through"""

    def filter_create(self, destination: str, record: CreateRecord) -> bool:
        return False

    def filter_update(self, destination: str, record: UpdateRecord) -> bool:
        return False

    def filter_delete(self, destination: str, record: DeleteRecord) -> bool:
        return False


class CompositeOperationFilter(OperationFilter):
    """Drops an operation when any member filter drops it"""

    def __init__(self, filters: Iterable[OperationFilter]):
        self.filters = tuple(filters)

    def filter_create(self, destination: str, record: CreateRecord) -> bool:
        return any(f.filter_create(destination, record) for f in self.filters)

    def filter_update(self, destination: str, record: UpdateRecord) -> bool:
        return any(f.filter_update(destination, record) for f in self.filters)

    def filter_delete(self, destination: str, record: DeleteRecord) -> bool:
        return any(f.filter_delete(destination, record) for f in self.filters)


@dataclass(frozen=True)
class OperationRule:
    """Allowed operations and column condition for one table"""
    operations: Optional[FrozenSet[OperationType]] = None
    where: Optional[Dict[str, Any]] = None

    def allows(self, operation: OperationType) -> bool:
        return self.operations is None or operation in self.operations


class RuleOperationFilter(OperationFilter):
    """Table keyed rules built from configuration.

    A record is dropped when its table has a rule that does not allow the
    operation, or when a create/update fails the rule's ``where`` condition.
    Deletes carry no columns and are only checked against the operation list.
    """

    def __init__(self, rules: Dict[str, OperationRule], filter_service: Optional[FilterService] = None):
        self.logger = structlog.get_logger()
        self.filter_service = filter_service or FilterService()
        for table_name, rule in rules.items():
            try:
                self.filter_service.validate_filter_config(rule.where)
            except FilterError as e:
                raise FilterError(f"Rule for table '{table_name}': {e}")
        self.rules = dict(rules)

    @classmethod
    def from_config(cls, rule_configs: Dict[str, OperationRuleConfig]) -> 'RuleOperationFilter':
        """Create rules from operation filter configuration"""
        rules = {}
        for table_name, rule_config in rule_configs.items():
            operations = None
            if rule_config.operations is not None:
                operations = frozenset(OperationType(op) for op in rule_config.operations)
            rules[table_name] = OperationRule(operations=operations, where=rule_config.where)
        return cls(rules)

    def filter_create(self, destination: str, record: CreateRecord) -> bool:
        return self._drop(destination, record)

    def filter_update(self, destination: str, record: UpdateRecord) -> bool:
        return self._drop(destination, record)

    def filter_delete(self, destination: str, record: DeleteRecord) -> bool:
        rule = self.rules.get(record.table)
        return rule is not None and not rule.allows(OperationType.DELETE)

    def _drop(self, destination: str, record) -> bool:
        rule = self.rules.get(record.table)
        if rule is None:
            return False
        if not rule.allows(record.operation):
            return True
        if rule.where and not self.filter_service.apply_filter(record.column_values(), rule.where):
            self.logger.debug("Operation rejected by table rule",
                              destination=destination,
                              table=record.table,
                              operation=record.operation.value)
            return True
        return False
