from typing import Annotated

from pydantic import BeforeValidator

from nexus_loot.enums import DropCondition
from nexus_loot.import_rules import DIFFICULTY_EXCLUSIVE_THRESHOLD


def is_satisfied(required: DropCondition, active: DropCondition) -> bool:
    """Every required flag must be present in `active`. `none` always passes."""
    return (required & active) == required


def conditions_for_context(active: DropCondition, difficulty_tier: int) -> DropCondition:
    """Add the flags a difficulty tier implies to the caller's flags."""
    flags = DropCondition(active)
    if difficulty_tier > 0:
        flags |= DropCondition.mayhem_mode
    if difficulty_tier >= DIFFICULTY_EXCLUSIVE_THRESHOLD:
        flags |= DropCondition.mayhem_6_plus
    return flags


def parse_conditions(value):
    """
    Accept a flag value, an int mask, a flag name, or a list of names.

    Datasets write conditions as ["coop", "first_kill"]; the engine only
    ever sees the combined DropCondition.
    """
    if isinstance(value, DropCondition):
        return value
    if isinstance(value, int):
        return DropCondition(value)
    if isinstance(value, str):
        value = [part for part in value.replace("|", ",").split(",") if part.strip()]
    if isinstance(value, (list, tuple, set)):
        flags = DropCondition.none
        for item in value:
            if isinstance(item, int):
                flags |= DropCondition(item)
                continue
            name = item.strip().lower()
            if name not in DropCondition.__members__:
                raise ValueError(f"Unknown drop condition '{item}'")
            flags |= DropCondition[name]
        return flags
    return value


ConditionFlags = Annotated[DropCondition, BeforeValidator(parse_conditions)]
