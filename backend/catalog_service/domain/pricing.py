"""
Price calculator for the four offer pricing models.

All amounts are integers in the smallest currency unit. Nothing here touches
floats, so tier boundaries behave exactly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from catalog_service.domain.config.pricing import (
    FlatPricing,
    PRICING_MODELS,
    PerUnitPricing,
    Pricing,
    PricingTier,
    TieredPricing,
    VolumePricing,
    validate_tiers,
)
from catalog_service.domain.config.fields import as_int
from catalog_service.domain.exceptions import ValidationError


@dataclass(frozen=True)
class TierCharge:
    tier_index: int
    start: int
    up_to: int | None
    quantity: int
    unit_amount: int
    flat_amount: int
    total: int


@dataclass(frozen=True)
class PriceResult:
    model: str
    quantity: int
    unit_price: int
    total_price: int
    tier_breakdown: tuple[TierCharge, ...] | None = None


def price(
    model: str,
    amount: int,
    tiers: Sequence[PricingTier | dict] | None = None,
    quantity: int = 1,
) -> PriceResult:
    """
    Price ``quantity`` units under ``model``.

    - flat: ``amount`` regardless of quantity
    - per_unit: ``amount * quantity``
    - tiered: graduated, each tier charges the units that fall inside it
    - volume: the whole quantity at the rate of the tier containing it

    Raises ValidationError on an unknown model, a negative or non-integer
    quantity/amount, or a malformed tier list.
    """
    if model not in PRICING_MODELS:
        raise ValidationError(f"Unknown pricing model: {model}", field="model")

    quantity = as_int(quantity, "quantity", minimum=0)
    amount = as_int(amount, "amount", minimum=0)

    if model == "flat":
        return PriceResult(model=model, quantity=quantity, unit_price=0, total_price=amount)

    if model == "per_unit":
        return PriceResult(
            model=model,
            quantity=quantity,
            unit_price=amount,
            total_price=amount * quantity,
        )

    validated = validate_tiers(list(tiers) if tiers is not None else None, "tiers")

    if model == "tiered":
        return _graduated(validated, quantity)
    return _volume(validated, quantity)


def price_for(pricing: Pricing, quantity: int = 1) -> PriceResult:
    """Price a parsed pricing variant."""
    if isinstance(pricing, FlatPricing):
        return price("flat", pricing.amount, None, quantity)
    if isinstance(pricing, PerUnitPricing):
        return price("per_unit", pricing.amount, None, quantity)
    if isinstance(pricing, TieredPricing):
        return price("tiered", pricing.amount, pricing.tiers, quantity)
    if isinstance(pricing, VolumePricing):
        return price("volume", pricing.amount, pricing.tiers, quantity)
    raise TypeError(f"Unhandled pricing variant: {type(pricing).__name__}")


def _graduated(tiers: tuple[PricingTier, ...], quantity: int) -> PriceResult:
    breakdown: list[TierCharge] = []
    remaining = quantity
    previous_ceiling = 0
    total = 0

    for index, tier in enumerate(tiers):
        if remaining <= 0:
            break

        if tier.up_to is None:
            tier_quantity = remaining
        else:
            tier_quantity = min(remaining, tier.up_to - previous_ceiling)

        flat_amount = tier.flat_amount or 0
        tier_total = tier_quantity * tier.unit_amount + flat_amount

        breakdown.append(
            TierCharge(
                tier_index=index,
                start=previous_ceiling,
                up_to=tier.up_to,
                quantity=tier_quantity,
                unit_amount=tier.unit_amount,
                flat_amount=flat_amount,
                total=tier_total,
            )
        )

        total += tier_total
        remaining -= tier_quantity
        if tier.up_to is not None:
            previous_ceiling = tier.up_to

    # Effective per-unit rate, floored to the minor unit
    unit_price = total // quantity if quantity else 0

    return PriceResult(
        model="tiered",
        quantity=quantity,
        unit_price=unit_price,
        total_price=total,
        tier_breakdown=tuple(breakdown),
    )


def _volume(tiers: tuple[PricingTier, ...], quantity: int) -> PriceResult:
    if quantity == 0:
        return PriceResult(model="volume", quantity=0, unit_price=0, total_price=0, tier_breakdown=())

    index, tier = next(
        (i, t) for i, t in enumerate(tiers) if t.up_to is None or quantity <= t.up_to
    )
    flat_amount = tier.flat_amount or 0
    total = quantity * tier.unit_amount + flat_amount

    return PriceResult(
        model="volume",
        quantity=quantity,
        unit_price=tier.unit_amount,
        total_price=total,
        tier_breakdown=(
            TierCharge(
                tier_index=index,
                start=0,
                up_to=tier.up_to,
                quantity=quantity,
                unit_amount=tier.unit_amount,
                flat_amount=flat_amount,
                total=total,
            ),
        ),
    )
