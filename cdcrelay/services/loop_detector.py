"""
Replication loop detection for the CDC relay
"""

from ..constants import LAST_POSITION_TABLE, TABLE_ID_COLUMN
from ..models.peer import PeerIdentity
from ..models.transaction import Transaction


class LoopDetector:
    """Recognizes transactions that echo data previously received from the peer.

    When the peer's changes are applied locally, the applying side records the
    peer's position in LAST_POSITION_TABLE with a TableId scoped to that peer.
    A transaction carrying such a create or update originated at the peer and
    must not be sent back to it.
    """

    def __init__(self, peer: PeerIdentity):
        self.peer = peer
        self._prefix = peer.table_id_prefix

    def is_loop_marker(self, record) -> bool:
        """True for a LastPosition create/update scoped to this peer"""
        if record.table != LAST_POSITION_TABLE:
            return False
        for column in getattr(record, "columns", ()):
            if column.name == TABLE_ID_COLUMN:
                if isinstance(column.value, str) and column.value.startswith(self._prefix):
                    return True
        return False

    def transaction_loops(self, transaction: Transaction) -> bool:
        """Check creates, then updates, for a marker of this peer"""
        for record in transaction.creates:
            if self.is_loop_marker(record):
                return True
        for record in transaction.updates:
            if self.is_loop_marker(record):
                return True
        return False
