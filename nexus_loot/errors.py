from typing import Any, Dict, List, Optional


class LootEngineError(Exception):
    """Base class for every error raised by the loot engine."""


class ConfigurationError(LootEngineError):
    """
    Authoring data is not safe to roll from.

    Raised at load/validate time. `errors` carries the validator's
    `{"path": ..., "message": ...}` records so the authoring side can
    point at the offending table, entry or part.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class NoCandidatesError(ConfigurationError):
    """A category/rarity pool stayed empty all the way down to Common."""


class EmptyPoolError(LootEngineError):
    """A weighted pick was attempted over an empty candidate list."""


class UnknownReferenceError(LootEngineError, KeyError):
    """A table, part or unique id that the current index does not know."""

    def __str__(self):
        return str(self.args[0]) if self.args else "unknown reference"
