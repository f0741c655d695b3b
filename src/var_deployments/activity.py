"""Append-only human-readable activity log."""

import logging
from collections import deque
from pathlib import Path
from typing import List, Optional, Union

from .constants import ACTIVITY_TAIL_LINES


class ActivityLog:
    """
    Timestamped one-line records of what the operator did.

    Lines are only ever appended and read back for display; they are never
    parsed into structured data. Not safe under concurrent processes.
    """

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path).absolute()
        # Unregistered logger: each instance owns its file handler
        self._logger = logging.Logger(__name__, logging.INFO)
        self._logger.propagate = False
        self._file_handler: Optional[logging.Handler] = None

    def _handler(self) -> logging.Handler:
        if self._file_handler is not None:
            return self._file_handler
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(self.path, encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        self._logger.addHandler(handler)
        self._file_handler = handler
        return handler

    def record(self, message: str) -> None:
        """Append one line."""
        self._handler()
        self._logger.info(" ".join(str(message).splitlines()))

    def tail(self, limit: int = ACTIVITY_TAIL_LINES) -> List[str]:
        """Last `limit` non-empty lines, oldest first; empty if no log exists."""
        try:
            with open(self.path, encoding="utf-8") as f:
                return list(deque((line.rstrip("\n") for line in f if line.strip()), maxlen=limit))
        except FileNotFoundError:
            return []

    def close(self) -> None:
        """Release this instance's file handle; a later record reopens it."""
        if self._file_handler is not None:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None
