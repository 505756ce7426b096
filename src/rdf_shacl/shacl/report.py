"""
Validation results and reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from rdf_shacl.namespaces import SH_NS
from rdf_shacl.terms import IRI, Term


class Severity(Enum):
    """SHACL validation severity levels."""

    VIOLATION = f"{SH_NS}Violation"
    WARNING = f"{SH_NS}Warning"
    INFO = f"{SH_NS}Info"

    @property
    def iri(self) -> IRI:
        return IRI(self.value)


@dataclass
class ValidationResult:
    """A single validation result."""

    focus_node: Term
    result_path: Optional[Term]
    value: Optional[Term]
    source_shape: Term
    source_constraint_component: Term
    message: Optional[str] = None
    severity: Term = Severity.VIOLATION.iri

    @property
    def is_violation(self) -> bool:
        return self.severity == Severity.VIOLATION.iri


@dataclass
class ValidationReport:
    """
    SHACL validation report.

    Any recorded result makes the report non-conforming. With
    allow_warnings, only sh:Violation results do.
    """

    conforms: bool = True
    results: list[ValidationResult] = field(default_factory=list)
    allow_warnings: bool = False

    def add_result(self, result: ValidationResult) -> None:
        """Add a validation result."""
        self.results.append(result)
        if result.is_violation or not self.allow_warnings:
            self.conforms = False

    def violations(self) -> list[ValidationResult]:
        """Get all violations."""
        return [r for r in self.results if r.severity == Severity.VIOLATION.iri]

    def warnings(self) -> list[ValidationResult]:
        """Get all warnings."""
        return [r for r in self.results if r.severity == Severity.WARNING.iri]

    def infos(self) -> list[ValidationResult]:
        """Get all info messages."""
        return [r for r in self.results if r.severity == Severity.INFO.iri]

    def __len__(self) -> int:
        return len(self.results)
