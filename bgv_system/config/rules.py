"""Comparator rule configurations per client service tier.

STANDARD is the default configuration. Higher tiers tighten tolerances and
lower the zone thresholds so the same discrepancies land in a stricter zone.
"""

from typing import Optional, Union

from bgv_system.data_management.schemas import FieldWeights, RuleConfig, ServiceTier


TIER_RULES: dict[ServiceTier, RuleConfig] = {
    ServiceTier.BASIC: RuleConfig(
        salary_tolerance_percent=15.0,
        dates_tolerance_days=62,
        green_zone_threshold=35,
        red_zone_threshold=70,
    ),
    ServiceTier.STANDARD: RuleConfig(),
    ServiceTier.PREMIUM: RuleConfig(
        salary_tolerance_percent=7.5,
        dates_tolerance_days=31,
        green_zone_threshold=25,
        red_zone_threshold=55,
    ),
    ServiceTier.ENTERPRISE: RuleConfig(
        salary_tolerance_percent=5.0,
        dates_tolerance_days=15,
        green_zone_threshold=20,
        red_zone_threshold=50,
        # designation counts as a name-level fact at this tier
        field_weights=FieldWeights(designation_mismatch=20),
    ),
}


def rules_for_tier(tier: Optional[Union[ServiceTier, str]]) -> RuleConfig:
    """
    Rule configuration for a service tier.

    Args:
        tier: ServiceTier, its string value, or None

    Returns:
        Copy of the tier's RuleConfig; STANDARD for None or unknown tiers
    """
    if tier is None:
        return TIER_RULES[ServiceTier.STANDARD].model_copy(deep=True)
    try:
        key = ServiceTier(tier)
    except ValueError:
        return TIER_RULES[ServiceTier.STANDARD].model_copy(deep=True)
    return TIER_RULES[key].model_copy(deep=True)


__all__ = ["TIER_RULES", "rules_for_tier"]
