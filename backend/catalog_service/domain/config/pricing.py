"""
Offer configuration as a closed set of pricing variants.

Stored drafts keep the raw JSON; everything that interprets an offer's
pricing goes through ``parse_offer_config`` and matches on the variant type.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from catalog_service.domain.exceptions import ValidationError
from .fields import as_choice, as_currency, as_int, as_mapping, optional_int, require

PRICING_MODELS = {"flat", "per_unit", "tiered", "volume"}
BILLING_INTERVALS = {"day", "week", "month", "year"}
USAGE_TYPES = {"licensed", "metered"}
ENTITLEMENT_VALUE_TYPES = {"boolean", "number", "string", "unlimited"}


@dataclass(frozen=True)
class PricingTier:
    up_to: int | None
    unit_amount: int
    flat_amount: int | None = None


@dataclass(frozen=True, kw_only=True)
class _PricingTerms:
    currency: str
    amount: int
    interval: str | None = None
    interval_count: int = 1
    usage_type: str = "licensed"

    @property
    def is_recurring(self) -> bool:
        return self.interval is not None


@dataclass(frozen=True, kw_only=True)
class FlatPricing(_PricingTerms):
    model = "flat"


@dataclass(frozen=True, kw_only=True)
class PerUnitPricing(_PricingTerms):
    model = "per_unit"


@dataclass(frozen=True, kw_only=True)
class TieredPricing(_PricingTerms):
    model = "tiered"
    tiers: tuple[PricingTier, ...]


@dataclass(frozen=True, kw_only=True)
class VolumePricing(_PricingTerms):
    model = "volume"
    tiers: tuple[PricingTier, ...]


Pricing = Union[FlatPricing, PerUnitPricing, TieredPricing, VolumePricing]


@dataclass(frozen=True)
class TrialConfig:
    days: int
    require_payment_method: bool = False


@dataclass(frozen=True)
class Entitlement:
    feature_key: str
    value: Any
    value_type: str


@dataclass(frozen=True)
class OfferConfig:
    pricing: Pricing
    trial: TrialConfig | None = None
    entitlements: tuple[Entitlement, ...] = ()
    metadata: dict = field(default_factory=dict)


def validate_tiers(tiers: Any, field_name: str = "pricing.tiers") -> tuple[PricingTier, ...]:
    """
    Tiers must be non-empty, strictly ascending by ``up_to`` and end with
    exactly one unbounded (``up_to = None``) tier.
    """
    if isinstance(tiers, (str, bytes)) or not isinstance(tiers, (list, tuple)) or not tiers:
        raise ValidationError(f"{field_name} must be a non-empty list", field=field_name)

    parsed: list[PricingTier] = []
    previous_ceiling = 0

    for index, raw in enumerate(tiers):
        path = f"{field_name}[{index}]"
        if isinstance(raw, PricingTier):
            tier = raw
        else:
            raw = as_mapping(raw, path)
            tier = PricingTier(
                up_to=raw.get("up_to"),
                unit_amount=require(raw, "unit_amount", path),
                flat_amount=raw.get("flat_amount"),
            )

        as_int(tier.unit_amount, f"{path}.unit_amount", minimum=0)
        if tier.flat_amount is not None:
            as_int(tier.flat_amount, f"{path}.flat_amount", minimum=0)

        if tier.up_to is None:
            if index != len(tiers) - 1:
                raise ValidationError(
                    f"{path}: only the last tier may be unbounded",
                    field=path,
                )
        else:
            as_int(tier.up_to, f"{path}.up_to", minimum=1)
            if tier.up_to <= previous_ceiling:
                raise ValidationError(
                    f"{path}.up_to must be greater than {previous_ceiling}",
                    field=f"{path}.up_to",
                )
            previous_ceiling = tier.up_to

        parsed.append(tier)

    if parsed[-1].up_to is not None:
        raise ValidationError(
            f"{field_name}: the last tier must be unbounded (up_to = null)",
            field=field_name,
        )

    return tuple(parsed)


def parse_pricing(raw: Any) -> Pricing:
    data = as_mapping(raw, "pricing")
    model = as_choice(require(data, "model", "pricing"), "pricing.model", PRICING_MODELS)

    terms = {
        "currency": as_currency(require(data, "currency", "pricing"), "pricing.currency"),
        "interval_count": optional_int(data, "interval_count", "pricing", minimum=1) or 1,
        "usage_type": as_choice(data.get("usage_type", "licensed"), "pricing.usage_type", USAGE_TYPES),
    }
    if data.get("interval") is not None:
        terms["interval"] = as_choice(data["interval"], "pricing.interval", BILLING_INTERVALS)

    if model in ("flat", "per_unit"):
        terms["amount"] = as_int(require(data, "amount", "pricing"), "pricing.amount", minimum=0)
    else:
        # Tiered models price from their tiers; amount is informational
        terms["amount"] = as_int(data.get("amount", 0), "pricing.amount", minimum=0)

    if model == "flat":
        return FlatPricing(**terms)
    if model == "per_unit":
        return PerUnitPricing(**terms)
    if model == "tiered":
        return TieredPricing(tiers=validate_tiers(data.get("tiers")), **terms)
    if model == "volume":
        return VolumePricing(tiers=validate_tiers(data.get("tiers")), **terms)

    raise ValidationError(f"Unsupported pricing model: {model}", field="pricing.model")


def _parse_trial(raw: Any) -> TrialConfig | None:
    if raw is None:
        return None
    data = as_mapping(raw, "trial")
    return TrialConfig(
        days=as_int(require(data, "days", "trial"), "trial.days", minimum=1),
        require_payment_method=bool(data.get("require_payment_method", False)),
    )


def _parse_entitlements(raw: Any) -> tuple[Entitlement, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("entitlements must be a list", field="entitlements")

    entitlements = []
    for index, item in enumerate(raw):
        path = f"entitlements[{index}]"
        item = as_mapping(item, path)
        feature_key = require(item, "feature_key", path)
        if not isinstance(feature_key, str) or not feature_key.strip():
            raise ValidationError(f"{path}.feature_key must be a non-empty string", field=path)
        entitlements.append(
            Entitlement(
                feature_key=feature_key,
                value=item.get("value"),
                value_type=as_choice(item.get("value_type"), f"{path}.value_type", ENTITLEMENT_VALUE_TYPES),
            )
        )

    keys = [e.feature_key for e in entitlements]
    if len(keys) != len(set(keys)):
        raise ValidationError("entitlements must not repeat a feature_key", field="entitlements")
    return tuple(entitlements)


def parse_offer_config(raw: Mapping[str, Any] | None) -> OfferConfig:
    """
    Parse a stored offer config into its typed form.

    Raises ValidationError naming the first offending field.
    """
    data = as_mapping(raw, "config")
    return OfferConfig(
        pricing=parse_pricing(require(data, "pricing", "config")),
        trial=_parse_trial(data.get("trial")),
        entitlements=_parse_entitlements(data.get("entitlements")),
        metadata=dict(data.get("metadata") or {}),
    )
