"""
Peer identity model for the CDC relay
"""

from dataclasses import dataclass

from ..constants import TABLE_ID_SEPARATOR
from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class PeerIdentity:
    """Destination replica the filtered stream is produced for"""
    guid: str

    def __post_init__(self):
        if not self.guid or not isinstance(self.guid, str):
            raise ConfigurationError("Peer guid is required")
        if TABLE_ID_SEPARATOR in self.guid:
            raise ConfigurationError(f"Peer guid must not contain '{TABLE_ID_SEPARATOR}': {self.guid}")

    @property
    def table_id_prefix(self) -> str:
        """Prefix of table ids scoped to this peer, e.g. ``<guid>/``"""
        return self.guid + TABLE_ID_SEPARATOR

    def strip_prefix(self, table_name_or_id: str) -> str:
        """Drop this peer's table id prefix, leaving other names untouched.

        ``"<guid>/Orders"`` becomes ``"Orders"`` and ``"<guid>/"`` becomes the
        empty database wide key.
        """
        prefix = self.table_id_prefix
        if table_name_or_id.startswith(prefix):
            return table_name_or_id[len(prefix):]
        return table_name_or_id
