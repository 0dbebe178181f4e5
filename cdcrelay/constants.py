"""
Bookkeeping names shared with the peer and session layer.

These values are part of the replication contract and must not be changed
independently of the peer.
"""

# Tables under this prefix hold replicator state and are never forwarded
INTERNAL_TABLE_PREFIX = "LogStreamer."

# Per-peer record of the last forwarded position
LAST_POSITION_TABLE = "LogStreamer.LastPosition"

# Column of LAST_POSITION_TABLE holding the peer scoped table id
TABLE_ID_COLUMN = "TableId"

# Separates the peer guid from the table name in a peer scoped table id
TABLE_ID_SEPARATOR = "/"

# Watermark key holding the database wide position once the prefix is stripped
DATABASE_WATERMARK_KEY = ""
