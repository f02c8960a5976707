"""
Terminal output for commands.

Commands never write to stdout directly; they hand values to a `Printer`,
which either renders them through a ``str.format`` template (plain format) or
queues their JSON form (json format). Nothing is written until `flush()`,
so JSON output of a command is one well-formed document.

Formatting helpers used by several commands live here too.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from pydantic import BaseModel

FORMAT_PLAIN = "plain"
FORMAT_JSON = "json"


def _to_data(value: Any) -> Any:
    """Convert models (and lists of them) into JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list | tuple):
        return [_to_data(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_data(item) for key, item in value.items()}
    return value


@dataclass
class Printer:
    """
    Buffered command output.

    Attributes:
        format: "plain" or "json".
        single: In json format, print a lone queued value as an object instead
                of a one-element array.
        quiet: Suppress normal output (errors are still written).
        stream: Output stream; defaults to the current sys.stdout.
        error_stream: Error stream; defaults to the current sys.stderr.
    """

    format: str = FORMAT_PLAIN
    single: bool = False
    quiet: bool = False
    stream: TextIO | None = None
    error_stream: TextIO | None = None
    lines: list[Any] = field(default_factory=list)

    @property
    def out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    @property
    def err(self) -> TextIO:
        return self.error_stream if self.error_stream is not None else sys.stderr

    def print(self, value: Any) -> None:
        """Queue a value as-is (plain: its str(); json: its JSON form)."""
        if self.quiet:
            return
        if self.format == FORMAT_JSON:
            self.lines.append(_to_data(value))
        else:
            self.lines.append(str(value))

    def print_template(self, template: str, value: Any, **extra: Any) -> None:
        """
        Queue a value rendered through a template.

        In plain format the template is filled with the value's fields plus
        ``extra``; in json format only the value itself is queued.

        Args:
            template: ``str.format`` template, e.g. ``"[{username}] {message}"``.
            value: Model or mapping supplying the template fields.
            **extra: Additional template fields not present on the value.

        Example:
            printer.print_template("{name} ({id})", channel)
        """
        if self.quiet:
            return
        if self.format == FORMAT_JSON:
            self.lines.append(_to_data(value))
            return

        fields = dict(value) if isinstance(value, dict) else _to_data(value)
        fields.update(extra)
        self.lines.append(template.format_map(fields))

    def print_error(self, message: str) -> None:
        """Write an error message to the error stream immediately."""
        print(message, file=self.err)

    def flush(self) -> None:
        """Write and clear everything queued so far."""
        if not self.lines:
            return

        if self.format == FORMAT_JSON:
            if self.single and len(self.lines) == 1:
                document: Any = self.lines[0]
            else:
                document = self.lines
            print(json.dumps(document, indent=2), file=self.out)
        else:
            for line in self.lines:
                print(line, file=self.out)

        self.out.flush()
        self.lines.clear()


# =============================================================================
# FORMATTING HELPERS
# =============================================================================


def format_timestamp(millis: int | None) -> str:
    """Format a server timestamp (ms since epoch) for display."""
    if not millis:
        return "-"
    return datetime.fromtimestamp(millis / 1000, tz=UTC).strftime("%Y-%m-%d %H:%M:%S")
