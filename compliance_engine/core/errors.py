from __future__ import annotations


class ComplianceError(Exception):
    """Base class for every error raised by the compliance engine."""


class ConfigError(ComplianceError):
    """Missing or invalid configuration (env vars, rulebook file)."""


class RulebookError(ConfigError):
    """The rulebook violates a catalog/rule uniqueness constraint."""


class RuleNotFound(ComplianceError):
    """No rule supplies a field required for lifecycle/fine evaluation."""

    def __init__(self, doc_type: str, company_id: str | None = None, missing: list[str] | None = None):
        self.doc_type = doc_type
        self.company_id = company_id
        self.missing = list(missing or [])
        detail = f"No compliance rule for doc_type={doc_type}"
        if company_id:
            detail += f" company_id={company_id}"
        if self.missing:
            detail += f" (unresolved: {', '.join(self.missing)})"
        super().__init__(detail)


class NotFoundError(ComplianceError):
    """A requested record is not present in the snapshot."""


class RenewalError(ComplianceError):
    """A document cannot be renewed (no expiry concept, already superseded, bad date)."""


class RenewalConflict(RenewalError):
    """Another renewal superseded the document first."""
