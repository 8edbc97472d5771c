"""Error types raised by the value graph and its rendering boundary.

Unknown node ids are not errors: retired or replaced identities are
expected to be referenced after the fact, so the store tolerates them.
Everything here is a contract violation or an I/O failure that the caller
can catch and recover from.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path  # noqa: TC003 - used at runtime in dataclass fields


class ValueTraceError(Exception):
    """Base class for all valuetrace errors."""


@dataclass
class ScopeUnderflowError(ValueTraceError):
    """Raised when closing a scope while only the root scope remains.

    The scope stack is left untouched, so the store stays usable.

    Attributes:
        root_signature: Signature of the root scope that was protected.
        depth: Stack depth at the time of the call (always 1).
    """

    root_signature: str
    depth: int = 1

    def __post_init__(self) -> None:
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return (
            f"Cannot exit scope: only the root scope '{self.root_signature}' "
            f"remains (depth={self.depth})"
        )


@dataclass
class RenderError(ValueTraceError):
    """Raised when the external Graphviz renderer fails.

    Any partially written artifact is left in place.

    Attributes:
        output_path: Where the image was supposed to be written.
        reason: Short description of the failure.
        returncode: Exit status of the renderer, if it ran.
        stderr: Captured diagnostic output of the renderer.
    """

    output_path: Path
    reason: str
    returncode: int | None = None
    stderr: str = ""

    def __post_init__(self) -> None:
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Failed to render {self.output_path}: {self.reason}"
        if self.returncode is not None:
            msg += f" (exit status {self.returncode})"
        if self.stderr:
            msg += f"\n{self.stderr.strip()}"
        return msg


class ConfigError(ValueTraceError):
    """Raised when a render configuration file cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config at {path}: {reason}")
