"""
Typed planner errors. Every failure of the cutting core is one of these;
the API layer maps them to HTTP status codes.
"""

from typing import Optional


class PlannerError(Exception):
    """Base class for all planner errors."""
    code = "planner_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ============================================================================
# PACKING ERRORS
# ============================================================================

class PackingError(PlannerError):
    code = "packing_error"


class RequirementTooWide(PackingError):
    code = "requirement_too_wide"

    def __init__(self, width: float, target_width: float, requirement_id: Optional[str] = None):
        self.width = width
        self.target_width = target_width
        self.requirement_id = requirement_id
        label = f" (requirement {requirement_id})" if requirement_id else ""
        super().__init__(f'Width {width}" exceeds set width {target_width}"{label}')


# ============================================================================
# CAPACITY ERRORS
# ============================================================================

class CapacityError(PlannerError):
    code = "capacity_error"


class JumboFull(CapacityError):
    code = "jumbo_full"

    def __init__(self, jumbo_id: str, max_sets: int):
        self.jumbo_id = jumbo_id
        super().__init__(f"Jumbo {jumbo_id} already has {max_sets} sets")


class SetFull(CapacityError):
    code = "set_full"

    def __init__(self, set_id: str, width: float, remaining: float):
        self.set_id = set_id
        self.width = width
        self.remaining = remaining
        super().__init__(f'Set {set_id} has {remaining}" left, cannot fit {width}"')


# ============================================================================
# LOOKUP / INPUT ERRORS
# ============================================================================

class NotFoundError(PlannerError):
    code = "not_found"

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class InputError(PlannerError):
    code = "input_error"


class InvalidSpec(InputError):
    code = "invalid_spec"


class VersionConflictError(PlannerError):
    code = "version_conflict"

    def __init__(self, suggestion_id: str, expected: int, actual: int):
        self.suggestion_id = suggestion_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Suggestion {suggestion_id} is at version {actual}, request was based on version {expected}"
        )
