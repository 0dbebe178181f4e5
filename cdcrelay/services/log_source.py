"""
Transaction log sources for the CDC relay

A log manager opens a named log at a continuation position; the returned
reader hands out committed transactions in commit order, strictly after that
position. ``read`` returns None when the log is exhausted or the token is
cancelled.
"""

import json
import os
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import structlog

from ..exceptions import LogSourceError, ValidationError
from ..models.transaction import CommitPosition, LogReadResult, Transaction
from ..utils.cancellation import CancellationToken
from ..utils.serialization import transaction_from_dict


class LogReader(ABC):
    """Sequential reader over committed transactions"""

    @abstractmethod
    async def read(self, token: CancellationToken) -> Optional[LogReadResult]:
        """Next transaction after the current position, or None"""

    def close(self) -> None:
        """Release resources held by the reader"""


class LogManager(ABC):
    """Opens transaction logs by name"""

    @abstractmethod
    def open_log(self, name: str, directory: str, position: CommitPosition) -> LogReader:
        """Open ``name`` in ``directory`` positioned right after ``position``"""


class MemoryLogManager(LogManager):
    """Logs kept in process memory.

    Useful for embedding the relay next to another component that produces
    transactions, and for tests. Appends may happen from another thread.
    """

    def __init__(self, follow: bool = False, poll_interval: float = 0.05):
        self.follow = follow
        self.poll_interval = poll_interval
        self._logs: Dict[str, List[LogReadResult]] = {}
        self._lock = threading.Lock()

    def append(self, name: str, commit_id: int, transaction: Transaction) -> LogReadResult:
        """Commit a transaction to the named log"""
        result = LogReadResult(transaction=transaction, position=CommitPosition(commit_id=commit_id))
        with self._lock:
            entries = self._logs.setdefault(name, [])
            if entries and entries[-1].commit_id >= commit_id:
                raise ValidationError(
                    f"Commit id {commit_id} is not after last commit {entries[-1].commit_id} in log '{name}'")
            entries.append(result)
        return result

    def entry_at(self, name: str, index: int) -> Optional[LogReadResult]:
        """Entry at ``index`` of the named log, or None past its end"""
        with self._lock:
            entries = self._logs.get(name)
            if entries is None or index >= len(entries):
                return None
            return entries[index]

    def open_log(self, name: str, directory: str, position: CommitPosition) -> 'MemoryLogReader':
        return MemoryLogReader(self, name, position, follow=self.follow, poll_interval=self.poll_interval)


class MemoryLogReader(LogReader):
    """Reader over a MemoryLogManager log"""

    def __init__(self, manager: MemoryLogManager, name: str, position: CommitPosition,
                 follow: bool = False, poll_interval: float = 0.05):
        self.manager = manager
        self.name = name
        self.position = position
        self.follow = follow
        self.poll_interval = poll_interval
        self._index = 0

    def _next_entry(self) -> Optional[LogReadResult]:
        while True:
            entry = self.manager.entry_at(self.name, self._index)
            if entry is None:
                return None
            self._index += 1
            if entry.commit_id > self.position.commit_id:
                self.position = entry.position
                return entry

    async def read(self, token: CancellationToken) -> Optional[LogReadResult]:
        while not token.is_cancellation_requested:
            entry = self._next_entry()
            if entry is not None or not self.follow:
                return entry
            await token.sleep(self.poll_interval)
        return None


class JsonLinesLogManager(LogManager):
    """Logs stored as ``<directory>/<name>.jsonl``, one transaction per line"""

    def __init__(self, follow: bool = False, poll_interval: float = 0.5):
        self.follow = follow
        self.poll_interval = poll_interval

    def open_log(self, name: str, directory: str, position: CommitPosition) -> 'JsonLinesLogReader':
        path = os.path.join(directory, f"{name}.jsonl")
        return JsonLinesLogReader(path, position, follow=self.follow, poll_interval=self.poll_interval)


class JsonLinesLogReader(LogReader):
    """Reads a JSON-lines transaction log, optionally following appends.

    Each result's position token is the byte offset just past its line, so a
    position handed back to ``open_log`` resumes without rescanning the file.
    """

    def __init__(self, path: str, position: CommitPosition, follow: bool = False, poll_interval: float = 0.5):
        self.logger = structlog.get_logger()
        self.path = path
        self.position = position
        self.follow = follow
        self.poll_interval = poll_interval
        self._file = None
        self._partial = b""
        self._offset = 0
        self._line_number = 0
        self._last_commit_id: Optional[int] = None

    def _open(self) -> bool:
        if self._file is not None:
            return True
        if not os.path.exists(self.path):
            if self.follow:
                return False
            raise LogSourceError(f"Transaction log not found: {self.path}")
        try:
            self._file = open(self.path, 'rb')
            if isinstance(self.position.token, int) and self.position.token > 0:
                self._file.seek(self.position.token)
                self._offset = self.position.token
        except OSError as e:
            raise LogSourceError(f"Cannot open transaction log {self.path}: {e}")
        self.logger.debug("Transaction log opened", path=self.path, offset=self._offset,
                          after_commit_id=self.position.commit_id)
        return True

    def _read_line(self) -> Optional[bytes]:
        try:
            chunk = self._file.readline()
        except OSError as e:
            raise LogSourceError(f"Error reading transaction log {self.path}: {e}")
        if not chunk:
            return None
        if not chunk.endswith(b"\n"):
            if self.follow:
                # writer has not finished the line yet
                self._partial += chunk
                return None
        line, self._partial = self._partial + chunk, b""
        self._offset += len(line)
        self._line_number += 1
        return line

    def _parse(self, line: bytes) -> LogReadResult:
        try:
            data = json.loads(line.decode("utf-8"))
            result = transaction_from_dict(data, token=self._offset)
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            raise LogSourceError(f"Corrupt entry at {self.path}:{self._line_number}: {e}")
        if self._last_commit_id is not None and result.commit_id <= self._last_commit_id:
            raise LogSourceError(
                f"Commit id {result.commit_id} at {self.path}:{self._line_number} "
                f"does not follow {self._last_commit_id}")
        self._last_commit_id = result.commit_id
        return result

    def _next_entry(self) -> Optional[LogReadResult]:
        if not self._open():
            return None
        while True:
            line = self._read_line()
            if line is None:
                return None
            if not line.strip():
                continue
            result = self._parse(line)
            if result.commit_id > self.position.commit_id:
                self.position = result.position
                return result

    async def read(self, token: CancellationToken) -> Optional[LogReadResult]:
        while not token.is_cancellation_requested:
            entry = self._next_entry()
            if entry is not None or not self.follow:
                return entry
            await token.sleep(self.poll_interval)
        return None

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
