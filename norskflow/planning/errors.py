"""Planning error types.

The planner itself never raises for incomplete profiles (zero paces are a
legitimate state). These errors cover caller mistakes and broken data files.

Standard error codes:
- UNKNOWN_VARIANT: Requested long-run variant does not exist on the session
- INTERVAL_OUT_OF_RANGE: Interval index does not exist on the session
- NOT_EDITABLE: Edit does not apply to this session type
- INVALID_CATALOG: Session template catalog is missing or malformed
"""


class PlanningError(RuntimeError):
    """Base planning error.

    Attributes:
        code: Error code (e.g., "UNKNOWN_VARIANT", "INVALID_CATALOG")
        details: List of error detail strings
    """

    def __init__(self, code: str, details: list[str]):
        self.code = code
        self.details = details
        super().__init__(f"{code}: {details}")


class PlanEditError(PlanningError, ValueError):
    """Raised when a session edit cannot be applied."""


class TemplateCatalogError(PlanningError):
    """Raised when the session template catalog cannot be loaded."""
