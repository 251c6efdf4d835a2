"""Promotion configuration as a closed set of discount variants."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Union

from dateutil.parser import isoparse

from catalog_service.domain.exceptions import ValidationError
from .fields import as_choice, as_currency, as_int, as_mapping, optional_int, require

DISCOUNT_TYPES = {"percent", "fixed_amount", "free_trial_days"}
DURATIONS = {"once", "repeating", "forever"}


@dataclass(frozen=True)
class PercentDiscount:
    percent_off: int
    discount_type = "percent"


@dataclass(frozen=True)
class FixedAmountDiscount:
    amount_off: int
    currency: str
    discount_type = "fixed_amount"


@dataclass(frozen=True)
class FreeTrialDiscount:
    days: int
    discount_type = "free_trial_days"


Discount = Union[PercentDiscount, FixedAmountDiscount, FreeTrialDiscount]


@dataclass(frozen=True)
class PromotionRestrictions:
    applicable_offer_ids: tuple[str, ...] = ()
    max_redemptions: int | None = None
    max_redemptions_per_customer: int | None = None
    minimum_amount: int | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None


@dataclass(frozen=True)
class PromotionConfig:
    discount: Discount
    currency: str | None = None
    duration: str = "forever"
    duration_in_months: int | None = None
    restrictions: PromotionRestrictions = field(default_factory=PromotionRestrictions)
    metadata: dict = field(default_factory=dict)


def _parse_timestamp(value: Any, field_name: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = isoparse(str(value))
        except ValueError as exc:
            raise ValidationError(f"{field_name} must be an ISO 8601 timestamp", field=field_name) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_discount(data: Mapping[str, Any]) -> Discount:
    discount_type = as_choice(require(data, "discount_type", "config"), "config.discount_type", DISCOUNT_TYPES)
    value = require(data, "discount_value", "config")

    if discount_type == "percent":
        return PercentDiscount(percent_off=as_int(value, "config.discount_value", minimum=1, maximum=100))
    if discount_type == "fixed_amount":
        return FixedAmountDiscount(
            amount_off=as_int(value, "config.discount_value", minimum=1),
            currency=as_currency(require(data, "currency", "config"), "config.currency"),
        )
    if discount_type == "free_trial_days":
        return FreeTrialDiscount(days=as_int(value, "config.discount_value", minimum=1))

    raise ValidationError(f"Unsupported discount type: {discount_type}", field="config.discount_type")


def parse_promotion_config(raw: Mapping[str, Any] | None) -> PromotionConfig:
    """
    Parse a stored promotion config into its typed form.

    Raises ValidationError naming the first offending field.
    """
    data = as_mapping(raw, "config")
    discount = parse_discount(data)

    duration = as_choice(data.get("duration", "forever"), "config.duration", DURATIONS)
    duration_in_months = optional_int(data, "duration_in_months", "config", minimum=1)
    if duration == "repeating" and duration_in_months is None:
        raise ValidationError(
            "config.duration_in_months is required for repeating promotions",
            field="config.duration_in_months",
        )

    offer_ids = data.get("applicable_offer_ids") or ()
    if not isinstance(offer_ids, (list, tuple)) or not all(isinstance(i, str) for i in offer_ids):
        raise ValidationError("config.applicable_offer_ids must be a list of ids", field="config.applicable_offer_ids")

    restrictions = PromotionRestrictions(
        applicable_offer_ids=tuple(offer_ids),
        max_redemptions=optional_int(data, "max_redemptions", "config", minimum=1),
        max_redemptions_per_customer=optional_int(data, "max_redemptions_per_customer", "config", minimum=1),
        minimum_amount=optional_int(data, "minimum_amount", "config", minimum=0),
        valid_from=_parse_timestamp(data.get("valid_from"), "config.valid_from"),
        valid_until=_parse_timestamp(data.get("valid_until"), "config.valid_until"),
    )
    if (
        restrictions.valid_from is not None
        and restrictions.valid_until is not None
        and restrictions.valid_until <= restrictions.valid_from
    ):
        raise ValidationError("config.valid_until must be after config.valid_from", field="config.valid_until")

    currency = data.get("currency")
    return PromotionConfig(
        discount=discount,
        currency=as_currency(currency, "config.currency") if currency is not None else None,
        duration=duration,
        duration_in_months=duration_in_months,
        restrictions=restrictions,
        metadata=dict(data.get("metadata") or {}),
    )
