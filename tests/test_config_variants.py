import pytest

from catalog_service.domain.config.discount import (
    FixedAmountDiscount,
    PercentDiscount,
    parse_promotion_config,
)
from catalog_service.domain.config.pricing import FlatPricing, TieredPricing, parse_offer_config
from catalog_service.domain.config.registry import assert_draft_config, parse_config
from catalog_service.domain.exceptions import ValidationError


def test_offer_config_parses_into_variant():
    config = parse_offer_config({
        "pricing": {"model": "flat", "currency": "eur", "amount": 4900, "interval": "year"},
        "trial": {"days": 14},
        "entitlements": [{"feature_key": "seats", "value": 5, "value_type": "number"}],
    })

    assert isinstance(config.pricing, FlatPricing)
    assert config.pricing.currency == "EUR"
    assert config.pricing.is_recurring
    assert config.trial.days == 14
    assert config.entitlements[0].feature_key == "seats"


def test_tiered_config_keeps_tiers():
    config = parse_offer_config({
        "pricing": {
            "model": "tiered",
            "currency": "USD",
            "tiers": [{"up_to": 10, "unit_amount": 1000}, {"up_to": None, "unit_amount": 500}],
        },
    })

    assert isinstance(config.pricing, TieredPricing)
    assert [t.up_to for t in config.pricing.tiers] == [10, None]


@pytest.mark.parametrize("raw, field", [
    ({}, "config.pricing"),
    ({"pricing": {"model": "flat", "currency": "USD"}}, "pricing.amount"),
    ({"pricing": {"model": "per_unit", "amount": 100}}, "pricing.currency"),
    ({"pricing": {"model": "hourly", "currency": "USD", "amount": 1}}, "pricing.model"),
    ({"pricing": {"model": "tiered", "currency": "USD"}}, "pricing.tiers"),
    ({"pricing": {"model": "flat", "currency": "USD", "amount": 1, "interval": "decade"}}, "pricing.interval"),
])
def test_incomplete_offer_config_names_field(raw, field):
    with pytest.raises(ValidationError) as exc:
        parse_offer_config(raw)
    assert exc.value.details["field"] == field


def test_duplicate_entitlements_rejected():
    with pytest.raises(ValidationError):
        parse_offer_config({
            "pricing": {"model": "flat", "currency": "USD", "amount": 1},
            "entitlements": [
                {"feature_key": "seats", "value": 1, "value_type": "number"},
                {"feature_key": "seats", "value": 2, "value_type": "number"},
            ],
        })


def test_percent_promotion():
    config = parse_promotion_config({"discount_type": "percent", "discount_value": 25})
    assert config.discount == PercentDiscount(percent_off=25)
    assert config.duration == "forever"


def test_fixed_amount_needs_currency():
    with pytest.raises(ValidationError):
        parse_promotion_config({"discount_type": "fixed_amount", "discount_value": 500})

    config = parse_promotion_config({"discount_type": "fixed_amount", "discount_value": 500, "currency": "usd"})
    assert config.discount == FixedAmountDiscount(amount_off=500, currency="USD")


@pytest.mark.parametrize("raw", [
    {"discount_type": "percent", "discount_value": 101},
    {"discount_type": "percent", "discount_value": 20, "duration": "repeating"},
    {"discount_type": "bogo", "discount_value": 1},
    {"discount_type": "percent", "discount_value": 20, "applicable_offer_ids": "offer-1"},
    {
        "discount_type": "percent",
        "discount_value": 20,
        "valid_from": "2026-02-01T00:00:00Z",
        "valid_until": "2026-01-01T00:00:00Z",
    },
])
def test_invalid_promotion_configs(raw):
    with pytest.raises(ValidationError):
        parse_promotion_config(raw)


def test_promotion_validity_window_is_utc():
    config = parse_promotion_config({
        "discount_type": "free_trial_days",
        "discount_value": 30,
        "valid_until": "2026-03-01T00:00:00",
    })
    assert config.restrictions.valid_until.tzinfo is not None


def test_registry_dispatches_on_kind():
    assert isinstance(parse_config("promotion", {"discount_type": "percent", "discount_value": 5}).discount, PercentDiscount)
    with pytest.raises(ValidationError):
        parse_config("bundle", {})


def test_drafts_must_be_objects():
    assert assert_draft_config({"pricing": {}}) == {"pricing": {}}
    with pytest.raises(ValidationError):
        assert_draft_config(["not", "an", "object"])
