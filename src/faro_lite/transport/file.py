"""File transport: append envelopes as JSON lines."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from ..envelope import Envelope
from .base import SendOutcome, Transport


logger = logging.getLogger(__name__)


@dataclass
class FileTransport(Transport):
    """
    Transport that appends envelopes to a file (JSONL format).

    Each envelope is written as a single JSON line for easy parsing.
    """
    path: str = "faro-envelopes.jsonl"
    encoding: str = "utf-8"

    name: str = field(default="file", init=False)

    _file: IO[str] | None = field(default=None, init=False, repr=False)

    async def start(self) -> None:
        if self._file is not None:
            return
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", encoding=self.encoding)

    async def stop(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    async def send(self, envelope: Envelope) -> SendOutcome:
        try:
            if not self._file:
                await self.start()
            self._file.write(envelope.to_json().decode(self.encoding) + "\n")
            self._file.flush()
        except OSError as e:
            logger.warning(f"Failed to write envelope to {self.path}: {e}")
            return SendOutcome.failure(f"io error: {e}")
        return SendOutcome.success()

    async def health_check(self) -> bool:
        return self._file is not None and not self._file.closed
