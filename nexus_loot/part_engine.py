from random import Random
from typing import Collection, Dict, List, Mapping, Optional, Protocol, Tuple

import structlog

from nexus_loot.enums import MANUFACTURER_CATEGORY, Manufacturer, PartCategory
from nexus_loot.errors import ConfigurationError
from nexus_loot.models.part_models import ComposedItem, PartDefinition
from nexus_loot.rarity import DEFAULT_DISTRIBUTION, RarityDistribution, RarityTier, effective_rarity, tiers_between
from nexus_loot.rarity_resolver import resolve, step_down_until_available
from nexus_loot.sampler import weighted_pick, weighted_pick_by
from nexus_loot.settings import settings

logger = structlog.get_logger(__name__)


class PartPools(Protocol):
    def find_part(self, part_id: str) -> Optional[PartDefinition]: ...

    def parts(self, category: PartCategory, rarity: RarityTier) -> Tuple[PartDefinition, ...]: ...

    def parts_by_category(self, category: PartCategory) -> List[PartDefinition]: ...


def open_world_parts(
    pools: PartPools,
    category: PartCategory,
    rarity: RarityTier,
    player_level: Optional[int] = None,
) -> List[PartDefinition]:
    return [
        p
        for p in pools.parts(category, rarity)
        if p.world_drop_enabled and (player_level is None or p.minimum_level <= player_level)
    ]


def _required_slots(pools: PartPools, part_ids: Collection[str]) -> Dict[PartCategory, set]:
    """Required part ids grouped by the slot they fill. Unknown ids are left to the validator."""
    slots: Dict[PartCategory, set] = {}
    for part_id in part_ids:
        required = pools.find_part(part_id)
        if required is not None:
            slots.setdefault(required.category, set()).add(part_id)
    return slots


def _compatible(
    pools: PartPools,
    candidates: List[PartDefinition],
    chosen: Mapping[PartCategory, PartDefinition],
) -> List[PartDefinition]:
    chosen_ids = {p.part_id for p in chosen.values()}
    blocked = {pid for p in chosen.values() for pid in p.incompatible_part_ids}
    needed = _required_slots(pools, [pid for p in chosen.values() for pid in p.required_part_ids])

    def fits(part: PartDefinition) -> bool:
        if part.part_id in blocked or chosen_ids.intersection(part.incompatible_part_ids):
            return False
        # a chosen part pins this slot
        if part.category in needed and part.part_id not in needed[part.category]:
            return False
        # this part needs a different part in a slot that is already filled
        for category, part_ids in _required_slots(pools, part.required_part_ids).items():
            if category in chosen and chosen[category].part_id not in part_ids:
                return False
        return True

    return [p for p in candidates if fits(p)]


def _bias_weight(
    part: PartDefinition,
    preferred: Collection[Manufacturer],
    multiplier: float,
) -> float:
    if preferred and part.category == MANUFACTURER_CATEGORY and part.manufacturer in preferred:
        return part.drop_weight * multiplier
    return part.drop_weight


def compose_item(
    pools: PartPools,
    rng: Random,
    fixed_overrides: Optional[Mapping[PartCategory, PartDefinition]] = None,
    distribution: Optional[RarityDistribution] = None,
    min_rarity: RarityTier = RarityTier.common,
    max_rarity: RarityTier = RarityTier.apocalypse,
    preferred_manufacturers: Collection[Manufacturer] = (),
    player_level: Optional[int] = None,
    omit: Collection[PartCategory] = (),
    bias_multiplier: Optional[float] = None,
) -> ComposedItem:
    """
    Assemble one part per category and band the mean part rarity.

    Fixed overrides are taken verbatim and constrain the rolled parts.
    Every other category rolls a tier inside [min_rarity, max_rarity],
    steps the tier down until some open world part there is compatible
    with what is already chosen, then picks by drop weight with preferred
    manufacturers' receivers boosted. Compatibility is only dropped when
    no tier down to Common has a compatible part. A slot that a chosen
    part requires is filled with the required part instead of rolling.
    """
    fixed_overrides = fixed_overrides or {}
    distribution = distribution or DEFAULT_DISTRIBUTION
    multiplier = settings.manufacturer_bias_multiplier if bias_multiplier is None else bias_multiplier

    for category, part in fixed_overrides.items():
        if part.category != category:
            raise ConfigurationError(
                f"Part '{part.part_id}' is a {part.category.name} part and cannot fill the {category.name} slot",
                [{"path": f"$.fixed_parts.{category.name}", "message": f"expected a {category.name} part"}],
            )

    chosen: Dict[PartCategory, PartDefinition] = {
        category: part for category, part in fixed_overrides.items() if category not in omit
    }
    degraded: List[PartCategory] = []

    for category in PartCategory:
        if category in omit or category in chosen:
            continue

        needed = _required_slots(pools, [pid for p in chosen.values() for pid in p.required_part_ids])
        if category in needed:
            chosen[category] = weighted_pick_by(
                [pools.find_part(pid) for pid in sorted(needed[category])], lambda p: p.drop_weight, rng,
            )
            continue

        def pool(tier: RarityTier) -> List[PartDefinition]:
            return open_world_parts(pools, category, tier, player_level)

        def compatible_pool(tier: RarityTier) -> List[PartDefinition]:
            return _compatible(pools, pool(tier), chosen)

        rolled = resolve(distribution, min_rarity, max_rarity, rng)
        if any(compatible_pool(t) for t in tiers_between(RarityTier.common, rolled)):
            tier = step_down_until_available(rolled, lambda t: bool(compatible_pool(t)), category=category.name)
            candidates = compatible_pool(tier)
        else:
            tier = step_down_until_available(rolled, lambda t: bool(pool(t)), category=category.name)
            candidates = pool(tier)
            logger.warning(
                "part_compatibility_ignored",
                category=category.name,
                rarity=tier.name,
                chosen=[p.part_id for p in chosen.values()],
            )
        if tier != rolled:
            degraded.append(category)

        chosen[category] = weighted_pick(
            [(p, _bias_weight(p, preferred_manufacturers, multiplier)) for p in candidates],
            rng,
        )

    if not chosen:
        raise ConfigurationError("Composite item omits every part category")

    # ordered by category so the dict compares equal across identical rolls
    parts = {c: chosen[c] for c in PartCategory if c in chosen}
    mean = sum(int(p.rarity) for p in parts.values()) / len(parts)
    receiver = parts.get(MANUFACTURER_CATEGORY)

    composed = ComposedItem(
        parts=parts,
        mean_rarity=mean,
        effective_rarity=effective_rarity(mean),
        manufacturer=receiver.manufacturer if receiver is not None else None,
        degraded_categories=degraded,
    )
    logger.debug(
        "item_composed",
        parts=composed.part_ids(),
        mean_rarity=round(mean, 3),
        rarity=composed.effective_rarity.name,
    )
    return composed


def random_part(
    pools: PartPools,
    category: PartCategory,
    rng: Random,
    player_level: Optional[int] = None,
) -> PartDefinition:
    """Weighted pick over every open-world part in a category."""
    candidates = [
        p
        for p in pools.parts_by_category(category)
        if p.world_drop_enabled and (player_level is None or p.minimum_level <= player_level)
    ]
    return weighted_pick_by(candidates, lambda p: p.drop_weight, rng)


def random_part_by_rarity(
    pools: PartPools,
    category: PartCategory,
    rng: Random,
    distribution: Optional[RarityDistribution] = None,
) -> PartDefinition:
    """Roll a tier from the drop rates first, fall back lower, then pick uniformly."""
    rolled = resolve(distribution or DEFAULT_DISTRIBUTION, RarityTier.common, RarityTier.apocalypse, rng)
    tier = step_down_until_available(
        rolled,
        lambda t: bool(open_world_parts(pools, category, t)),
        category=category.name,
    )
    return rng.choice(open_world_parts(pools, category, tier))
