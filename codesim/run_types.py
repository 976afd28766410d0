"""Run pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from . import constants


class RunStatus(Enum):
    """Lifecycle of a single interpreter run."""

    RUNNING = "running"
    AWAITING_INPUT = "awaiting_input"
    COMPLETED = "completed"


@dataclass(frozen=True)
class SimulatorConfig:
    """Groups simulator configuration."""

    linked_list_classes: tuple[str, ...] = constants.LINKED_LIST_NODE_CLASSES
    max_chain_nodes: int = constants.MAX_CHAIN_NODES
    comment_marker: str = constants.COMMENT_MARKER
    echo_input: bool = True


@dataclass(frozen=True)
class InputRequest:
    """A pending request for a value from the caller."""

    prompt: str
    variable_name: str = ""
    line_number: int = 0


@dataclass
class RunStats:
    """Counters collected over one interpreter run."""

    lines_processed: int = 0
    errors: int = 0
    input_requests: int = 0
    classes_defined: int = 0
    statements: Counter = field(default_factory=Counter)

    def report(self) -> str:
        kinds = ", ".join(
            f"{kind}={count}" for kind, count in sorted(self.statements.items())
        )
        return (
            f"{self.lines_processed} lines, {self.classes_defined} classes, "
            f"{self.input_requests} input requests, {self.errors} errors"
            + (f" ({kinds})" if kinds else "")
        )
