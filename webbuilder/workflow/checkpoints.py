"""
Append-only sinks for checkpoints and log entries.

A sink only has to accept entries and never lose one it has acknowledged;
reading back is a convenience of the concrete sinks.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

from .models import Checkpoint, LogEntry

logger = logging.getLogger(__name__)

Entry = Union[Checkpoint, LogEntry]


class CheckpointSink(ABC):

    @abstractmethod
    def append(self, entry: Entry) -> None:
        pass


class MemoryCheckpointSink(CheckpointSink):

    def __init__(self):
        self._entries: List[Entry] = []

    def append(self, entry: Entry) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> List[Entry]:
        return list(self._entries)

    @property
    def checkpoints(self) -> List[Checkpoint]:
        return [e for e in self._entries if isinstance(e, Checkpoint)]

    @property
    def logs(self) -> List[LogEntry]:
        return [e for e in self._entries if isinstance(e, LogEntry)]

    def for_plan(self, plan_id: str) -> List[Entry]:
        return [e for e in self._entries if e.plan_id == plan_id]


class JsonlCheckpointSink(CheckpointSink):
    """ One JSON object per line; each append is flushed to disk before returning. """

    def __init__(self, path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Checkpoint log at: {self.path}")

    def append(self, entry: Entry) -> None:
        line = json.dumps(entry.to_dict(), ensure_ascii=False, default=str)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()
            os.fsync(f.fileno())

    def read_all(self) -> List[dict]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
