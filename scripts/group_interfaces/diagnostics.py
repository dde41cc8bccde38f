"""Diagnostics reporting for the group-interface generator.

The generator reports every problem through an ErrorHandler. Warnings are
recorded and generation continues; after reporting an error the generator
raises GroupInterfaceError, which unwinds the whole run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from group_interfaces.types import Locator

logger = logging.getLogger(__name__)


class Severity(Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    locator: Locator | None = None

    def __str__(self) -> str:
        if self.locator is not None:
            return f"{self.locator}: {self.message}"
        return self.message


class GroupInterfaceError(Exception):
    """Fatal generation failure. Carries the diagnostic that caused it."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic


@dataclass
class ErrorHandler:
    """Collects diagnostics and mirrors them to the module logger."""

    diagnostics: list[Diagnostic] = field(default_factory=list)

    def warning(self, message: str, locator: Locator | None = None) -> Diagnostic:
        diagnostic = Diagnostic(Severity.WARNING, message, locator)
        self.diagnostics.append(diagnostic)
        logger.warning("%s", diagnostic)
        return diagnostic

    def error(self, message: str, locator: Locator | None = None) -> Diagnostic:
        diagnostic = Diagnostic(Severity.ERROR, message, locator)
        self.diagnostics.append(diagnostic)
        logger.error("%s", diagnostic)
        return diagnostic

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]
