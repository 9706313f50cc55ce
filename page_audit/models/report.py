"""Models for page-quality audit reports."""

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from page_audit.models.base import Model


class CategoryResult(Model):
    """Score of a single audit category such as ``performance``."""

    title: str
    score: float | None = Field(default=None, ge=0, le=1)


class AuditDetails(Model):
    """Subset of the audit details relevant to the harness."""

    type: str | None = None
    overall_savings_ms: float | None = Field(
        default=None, ge=0, alias="overallSavingsMs"
    )


class AuditResult(Model):
    """Outcome of one audit inside a report."""

    title: str
    description: str = ""
    score: float | None = Field(default=None, ge=0, le=1)
    score_display_mode: str | None = Field(default=None, alias="scoreDisplayMode")
    numeric_value: float | None = Field(default=None, ge=0, alias="numericValue")
    details: AuditDetails | None = None

    @property
    def details_type(self) -> str | None:
        """Return the details type, e.g. ``opportunity`` or ``table``."""
        return self.details.type if self.details else None

    @property
    def is_opportunity(self) -> bool:
        """Whether the audit is classified as an optimization opportunity."""
        return self.details_type == "opportunity"

    @property
    def savings_ms(self) -> float:
        """Estimated savings in milliseconds, zero when unknown."""
        if self.details and self.details.overall_savings_ms is not None:
            return self.details.overall_savings_ms
        return self.numeric_value or 0.0


class AuditReport(Model):
    """Parsed audit report.

    Scores are kept on the 0-1 scale; ``raw`` holds the report exactly as
    the engine produced it so it can be persisted unchanged.
    """

    categories: Mapping[str, CategoryResult] = Field(default_factory=dict)
    audits: Mapping[str, AuditResult] = Field(default_factory=dict)
    raw: Mapping[str, Any] = Field(default_factory=dict, repr=False)

    @classmethod
    def from_engine_output(cls, data: Mapping[str, Any]) -> "AuditReport":
        """Build a report from the engine's JSON result."""
        return cls.model_validate(
            {
                "categories": data.get("categories") or {},
                "audits": data.get("audits") or {},
                "raw": data,
            }
        )

    @classmethod
    def empty(cls) -> "AuditReport":
        """Report for runs that skip the quality audit."""
        return cls()
