"""
Service-layer exception hierarchy.

Services raise these; blueprints register handlers against them once and
get the same HTTP status everywhere:

    NotFoundError   → 404
    ValidationError → 400
    ConflictError   → 409

Usage:
    from scorecard.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Program", resource_id="program-007")
    raise ValidationError("quarter is required", details={"quarter": "missing"})
"""


class NotFoundError(Exception):
    """Raised when a requested row does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Pillar", "Alignment").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" {resource_id!r}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is malformed or violates a closed vocabulary.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would violate a uniqueness or dependency rule.

    Two shapes are used:
      - duplicate:  ConflictError("Alignment", "endpoints", "goal:goal-001")
      - dependency: ConflictError("Pillar", "categories", count=3,
                                  message="Cannot delete pillar: 3 categories depend on it")

    Args:
        resource: Entity name.
        field: The unique field, or the dependent collection name.
        value: The conflicting value.
        message: Explicit message overriding the generated one.
        count: Number of dependent rows (dependency conflicts only).
    """

    def __init__(
        self,
        resource: str,
        field: str,
        value: str | None = None,
        *,
        message: str | None = None,
        count: int | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        self.count = count
        super().__init__(message or f"{resource} with {field}={value!r} already exists")
