from ..database import get_db  # noqa: F401  re-exported for the endpoint modules
from ..services.exceptions import (
    CapacityError,
    InputError,
    NotFoundError,
    PackingError,
    PlannerError,
    VersionConflictError,
)
from ..services.manual_adjustment import SuggestionRegistry

# ============================================================================
# ERROR MAPPING
# ============================================================================

# Most specific first; anything else is a server error
ERROR_STATUS_CODES = [
    (NotFoundError, 404),
    (VersionConflictError, 409),
    (CapacityError, 409),
    (PackingError, 400),
    (InputError, 400),
]


def status_code_for(error: PlannerError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


# ============================================================================
# LIVE SUGGESTIONS
# ============================================================================

# Suggestions live in process memory between planning and commit
suggestion_registry = SuggestionRegistry()


def get_registry() -> SuggestionRegistry:
    return suggestion_registry
