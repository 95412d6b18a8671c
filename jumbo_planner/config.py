"""
Planner Configuration
=====================

Settings for the jumbo roll planner. Values come from the environment
(a local .env file is loaded first) and fall back to the mill defaults.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else None


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


class PlannerConfig:
    """Configuration for the cutting planner and its API."""

    # Database connection settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./jumbo_planner.db")

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Slitting constraints
    SET_WIDTH: float = _env_float("SET_WIDTH", 118.0)  # Width of one intermediate set
    BASE_DECKLE: float = _env_float("BASE_DECKLE", 119.0)  # target_width = BASE_DECKLE - wastage
    SETS_PER_JUMBO: int = _env_int("SETS_PER_JUMBO", 3)  # Slitter limit
    WIDTH_EPSILON: float = 0.01  # Inches

    # Existing stock reuse
    # Widest leftover allowed when a stock roll serves a cut; unset means any roll wide enough qualifies
    EXISTING_STOCK_MAX_OVERRUN: Optional[float] = _env_optional_float("EXISTING_STOCK_MAX_OVERRUN")
    MIN_RESTOCK_WIDTH: float = _env_float("MIN_RESTOCK_WIDTH", 1.0)

    # Live suggestions kept for adjustment before commit
    SUGGESTION_REGISTRY_MAX: int = _env_int("SUGGESTION_REGISTRY_MAX", 1000)
    SUGGESTION_TTL_SECONDS: float = _env_float("SUGGESTION_TTL_SECONDS", 8 * 3600.0)  # One shift

    # Manual additions are offered while a set still has this much waste
    MANUAL_ADDITION_MIN_WASTE: float = _env_float("MANUAL_ADDITION_MIN_WASTE", 5.0)

    # Solver settings
    PLANNER_MAX_WORKERS: int = _env_int("PLANNER_MAX_WORKERS", 1)
    CP_SAT_DETERMINISTIC_LIMIT: float = _env_float("CP_SAT_DETERMINISTIC_LIMIT", 5.0)  # Solver work units
    CP_SAT_TIME_LIMIT: float = _env_float("CP_SAT_TIME_LIMIT", 10.0)  # Wall clock backstop

    # CORS
    DEFAULT_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    @classmethod
    def get_cors_origins(cls) -> List[str]:
        """Built-in origins plus any listed in CORS_ORIGINS."""
        origins = list(cls.DEFAULT_CORS_ORIGINS)
        env_origins = os.getenv("CORS_ORIGINS", "")
        if env_origins:
            origins.extend([origin.strip() for origin in env_origins.split(",") if origin.strip()])
        return origins


settings = PlannerConfig
