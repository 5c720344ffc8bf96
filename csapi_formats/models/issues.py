"""Validation diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One validation problem, located by a dot/bracket path.

    Attributes:
        message: Human-readable description.
        path: Route to the offending value, ``None`` for the root.
    """

    message: str
    path: str | None = None

    def prefixed(self, segment: str) -> ValidationIssue:
        """Return a copy re-rooted one level up at *segment*."""
        if not segment:
            return self
        if self.path is None:
            return ValidationIssue(self.message, segment)
        joiner = "" if self.path.startswith("[") else "."
        return ValidationIssue(self.message, f"{segment}{joiner}{self.path}")

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Errors and warnings from a document-level validator.

    Errors make the document invalid; warnings do not.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def merged(self, other: ValidationResult) -> ValidationResult:
        return ValidationResult(self.errors + other.errors, self.warnings + other.warnings)
