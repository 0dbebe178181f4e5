"""
JSON representation of log entries

Used by the JSON-lines log source and by the relay output.
"""

import json
from typing import Any, Dict

from ..exceptions import ValidationError
from ..models.transaction import (
    CommitPosition, CreateRecord, UpdateRecord, DeleteRecord, Transaction, LogReadResult
)


def transaction_to_dict(result: LogReadResult) -> Dict[str, Any]:
    """Convert a read result into a JSON-compatible dictionary"""
    transaction = result.transaction
    return {
        "commit_id": result.commit_id,
        "creates": [
            {"table": record.table, "columns": record.column_values()}
            for record in transaction.creates
        ],
        "updates": [
            {"table": record.table, "key": record.key, "columns": record.column_values()}
            for record in transaction.updates
        ],
        "deletes": [
            {"table": record.table, "key": record.key}
            for record in transaction.deletes
        ],
    }


def transaction_from_dict(data: Dict[str, Any], token: Any = None) -> LogReadResult:
    """
    Build a read result from its dictionary form

    Raises:
        ValidationError: If required fields are missing or malformed
    """
    if not isinstance(data, dict):
        raise ValidationError("Transaction entry must be an object")
    try:
        transaction = Transaction(
            creates=[
                CreateRecord(table=entry["table"], columns=entry.get("columns") or {})
                for entry in data.get("creates") or []
            ],
            updates=[
                UpdateRecord(table=entry["table"], key=entry.get("key"), columns=entry.get("columns") or {})
                for entry in data.get("updates") or []
            ],
            deletes=[
                DeleteRecord(table=entry["table"], key=entry.get("key"))
                for entry in data.get("deletes") or []
            ],
        )
        position = CommitPosition(commit_id=data["commit_id"], token=token)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValidationError(f"Malformed transaction entry: {e}")
    return LogReadResult(transaction=transaction, position=position)


def dumps(result: LogReadResult) -> str:
    """Single line JSON for a read result"""
    return json.dumps(transaction_to_dict(result), default=str, separators=(",", ":"))
