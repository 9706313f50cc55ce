"""Models for the harness verdict."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Literal

type VerdictState = Literal["pending", "passed", "failed"]


class ExitCode(IntEnum):
    """Process exit codes."""

    PASSED = 0
    FAILED = 1
    INTERNAL_ERROR = 2


@dataclass(frozen=True, kw_only=True)
class Verdict:
    """Final pass/fail decision with its supporting reasons.

    ``reasons`` lists what made the run fail, ``diagnostics`` lists findings
    surfaced for visibility only.
    """

    state: Literal["passed", "failed"]
    reasons: Sequence[str] = field(default_factory=tuple)
    diagnostics: Sequence[str] = field(default_factory=tuple)

    @property
    def passed(self) -> bool:
        """Whether the run passed."""
        return self.state == "passed"

    @property
    def exit_code(self) -> ExitCode:
        """Exit code for this verdict."""
        return ExitCode.PASSED if self.passed else ExitCode.FAILED
