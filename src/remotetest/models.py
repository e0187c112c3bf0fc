"""Shared domain models for remotetest."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class RunContext:
    """Dispatch target and artifact locations for one execution."""

    run_id: str
    dispatcher: str
    key_file: str
    driver_host: str
    main_host: str
    log_artifact: str


@dataclass(frozen=True)
class RemoteStep:
    name: str
    host: str
    command: str
    role: str
    output_path: Optional[str] = None


@dataclass
class StepOutcome:
    name: str
    host: str
    role: str
    exit_code: Optional[int]
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass
class RunResult:
    """Outcome of a run. ``exit_code`` is always the test step's status."""

    exit_code: int
    outcomes: List[StepOutcome] = field(default_factory=list)

    def outcome(self, name: str) -> Optional[StepOutcome]:
        for item in self.outcomes:
            if item.name == name:
                return item
        return None
