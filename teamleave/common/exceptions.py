"""Engine exceptions.

Every failure carries a machine-readable ``error_type`` plus a human
``title``/``detail`` pair so the surrounding web layer can translate it into
its own error envelope without inspecting messages.
"""

from __future__ import annotations

from typing import Any, Optional


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all engine exceptions."""

    def __init__(
        self,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "type": self.error_type,
            "title": self.title,
            "detail": self.detail,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundException(AppException):
    """Entity missing from the supplied snapshot."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ValidationException(AppException):
    """Business-rule validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )


class TeamConfigurationError(AppException):
    """Team settings cannot drive a calculation (missing or invalid limit)."""

    def __init__(self, detail: str, field: str = "settings") -> None:
        super().__init__(
            error_type="invalid-team-configuration",
            title="Invalid Team Configuration",
            detail=detail,
            errors={field: [detail]},
        )
