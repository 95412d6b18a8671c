import threading
from typing import Dict
import logging


logger = logging.getLogger(__name__)


class IdGenerator:
    """
    Hands out human-readable ids for one planning call.

    Format: PREFIX-00001, qualified by an optional namespace
    (e.g. ``spec_120_Golden_18.0/JR-00001``). Counters live on the
    instance, so every call or spec group gets its own sequence and
    results stay identical no matter how groups are scheduled.
    """

    ID_PATTERNS: Dict[str, Dict[str, str]] = {
        "suggestion": {
            "prefix": "SUG",
            "description": "Spec-level suggestion IDs (SUG-00001)",
        },
        "jumbo": {
            "prefix": "JR",
            "description": "Virtual jumbo roll IDs (JR-00001)",
        },
        "set": {
            "prefix": "SET",
            "description": "118\" set IDs (SET-00001)",
        },
        "cut": {
            "prefix": "CUT",
            "description": "Cut roll IDs (CUT-00001)",
        },
        "manual_cut": {
            "prefix": "MC",
            "description": "Operator-added cut IDs (MC-00001)",
        },
    }

    def __init__(self, namespace: str = "", width: int = 5):
        self.namespace = namespace
        self.width = width
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def next_id(self, kind: str) -> str:
        pattern = self.ID_PATTERNS.get(kind)
        if pattern is None:
            raise ValueError(f"No ID pattern defined for '{kind}'")

        with self._lock:
            counter = self._counters.get(kind, 0) + 1
            self._counters[kind] = counter

        base_id = f"{pattern['prefix']}-{counter:0{self.width}d}"
        return f"{self.namespace}/{base_id}" if self.namespace else base_id

    def scoped(self, namespace: str) -> "IdGenerator":
        """A fresh generator whose ids are qualified by ``namespace``."""
        full = f"{self.namespace}/{namespace}" if self.namespace else namespace
        return IdGenerator(namespace=full, width=self.width)
