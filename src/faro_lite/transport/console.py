"""Console transport for development/debugging."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field

from ..envelope import Envelope
from .base import SendOutcome, Transport


@dataclass
class ConsoleTransport(Transport):
    """
    Transport that writes envelopes to console (stdout/stderr).

    Useful when no collector is running.
    """
    # Output destination
    stream: str = "stdout"  # stdout | stderr

    # Output format
    format: str = "json"  # json | compact | pretty

    # Prefix for each line
    prefix: str = "[FARO] "

    name: str = field(default="console", init=False)

    async def send(self, envelope: Envelope) -> SendOutcome:
        out = sys.stdout if self.stream == "stdout" else sys.stderr
        print(f"{self.prefix}{self._format_envelope(envelope)}", file=out)
        return SendOutcome.success()

    def _format_envelope(self, envelope: Envelope) -> str:
        if self.format == "json":
            return envelope.to_json().decode("utf-8")
        elif self.format == "compact":
            label = envelope.name if envelope.name is not None else envelope.message
            return (
                f"{envelope.timestamp} "
                f"{envelope.type.value} "
                f"{label} "
                f"{json.dumps(envelope.attributes, sort_keys=True, default=str)}"
            )
        else:  # pretty
            return json.dumps(envelope.to_dict(), indent=2, sort_keys=True, default=str)
