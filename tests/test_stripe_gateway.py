from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from catalog_service.domain.config.discount import parse_promotion_config
from catalog_service.domain.config.pricing import parse_offer_config
from catalog_service.gateways.base import BillingProviderError
from catalog_service.gateways.stripe_gateway import (
    StripeGateway,
    build_coupon_params,
    build_price_params,
    build_promotion_code_params,
)

GATEWAY_MODULE = "catalog_service.gateways.stripe_gateway"


@pytest.fixture
def gateway(monkeypatch):
    # The gateway installs a process-wide HTTP client; restore it afterwards
    monkeypatch.setattr(stripe, "default_http_client", stripe.default_http_client)
    monkeypatch.setattr(stripe, "max_network_retries", stripe.max_network_retries)
    return StripeGateway(api_key="sk_test_fake", timeout=5)


def _offer(**overrides):
    data = dict(id="offer-1", kind="offer", name="Pro plan", description=None, code=None, workspace_id="ws-1")
    data.update(overrides)
    return SimpleNamespace(**data)


def _promotion(**overrides):
    data = dict(id="promo-1", kind="promotion", name="Spring sale", description=None, code="SPRING20", workspace_id="ws-1")
    data.update(overrides)
    return SimpleNamespace(**data)


def _offer_config(pricing):
    return parse_offer_config({"pricing": pricing})


class TestPriceParams:
    def test_recurring_per_unit(self):
        config = _offer_config({"model": "per_unit", "currency": "USD", "amount": 1500, "interval": "month"})

        params = build_price_params("prod_1", config.pricing)

        assert params["unit_amount"] == 1500
        assert params["currency"] == "usd"
        assert params["recurring"] == {"interval": "month", "interval_count": 1, "usage_type": "licensed"}
        assert "billing_scheme" not in params

    def test_one_time_flat_has_no_recurring_terms(self):
        config = _offer_config({"model": "flat", "currency": "USD", "amount": 9900})

        params = build_price_params("prod_1", config.pricing)

        assert params["unit_amount"] == 9900
        assert "recurring" not in params

    @pytest.mark.parametrize("model, tiers_mode", [("tiered", "graduated"), ("volume", "volume")])
    def test_tiered_models(self, model, tiers_mode):
        config = _offer_config({
            "model": model,
            "currency": "USD",
            "interval": "month",
            "tiers": [
                {"up_to": 10, "unit_amount": 1000, "flat_amount": 200},
                {"up_to": None, "unit_amount": 500},
            ],
        })

        params = build_price_params("prod_1", config.pricing)

        assert params["billing_scheme"] == "tiered"
        assert params["tiers_mode"] == tiers_mode
        assert params["tiers"] == [
            {"up_to": 10, "unit_amount": 1000, "flat_amount": 200},
            {"up_to": "inf", "unit_amount": 500},
        ]


class TestCouponParams:
    def test_repeating_percent_coupon(self):
        config = parse_promotion_config({
            "discount_type": "percent",
            "discount_value": 20,
            "duration": "repeating",
            "duration_in_months": 3,
            "max_redemptions": 100,
            "valid_until": "2026-06-01T00:00:00Z",
        })

        params = build_coupon_params("Spring sale", config)

        assert params["percent_off"] == 20
        assert params["duration"] == "repeating"
        assert params["duration_in_months"] == 3
        assert params["max_redemptions"] == 100
        assert params["redeem_by"] == int(datetime(2026, 6, 1, tzinfo=timezone.utc).timestamp())

    def test_fixed_amount_coupon(self):
        config = parse_promotion_config({"discount_type": "fixed_amount", "discount_value": 500, "currency": "EUR"})

        params = build_coupon_params("Five off", config)

        assert params["amount_off"] == 500
        assert params["currency"] == "eur"
        assert params["duration"] == "forever"

    def test_free_trial_cannot_be_a_coupon(self):
        config = parse_promotion_config({"discount_type": "free_trial_days", "discount_value": 14})

        with pytest.raises(BillingProviderError) as exc:
            build_coupon_params("Trial", config)
        assert exc.value.code == "UNSUPPORTED_DISCOUNT"

    def test_promotion_code_restrictions(self):
        config = parse_promotion_config({
            "discount_type": "percent",
            "discount_value": 10,
            "currency": "usd",
            "max_redemptions_per_customer": 1,
            "minimum_amount": 2000,
        })

        params = build_promotion_code_params("SPRING20", "coupon_1", config)

        assert params["coupon"] == "coupon_1"
        assert params["code"] == "SPRING20"
        assert params["restrictions"] == {
            "first_time_transaction": True,
            "minimum_amount": 2000,
            "minimum_amount_currency": "usd",
        }


class TestOfferSync:
    CONFIG = {"model": "per_unit", "currency": "USD", "amount": 1500, "interval": "month"}

    def test_first_sync_creates_product_and_price(self, gateway):
        version = SimpleNamespace(id="ver-1")

        with patch(f"{GATEWAY_MODULE}.stripe.Product.create", return_value=SimpleNamespace(id="prod_1")) as create_product, \
                patch(f"{GATEWAY_MODULE}.stripe.Price.create", return_value=SimpleNamespace(id="price_1")) as create_price:
            result = gateway.sync_catalog_entity(_offer(), version, _offer_config(self.CONFIG))

        assert result.parent_external_id == "prod_1"
        assert result.version_external_id == "price_1"

        product_kwargs = create_product.call_args.kwargs
        assert product_kwargs["name"] == "Pro plan"
        assert "description" not in product_kwargs
        assert product_kwargs["metadata"]["catalog_offer_id"] == "offer-1"
        assert create_price.call_args.kwargs["product"] == "prod_1"

    def test_resync_reuses_product(self, gateway):
        existing = SimpleNamespace(external_id="prod_9")

        with patch(f"{GATEWAY_MODULE}.stripe.Product.create") as create_product, \
                patch(f"{GATEWAY_MODULE}.stripe.Product.modify", return_value=SimpleNamespace(id="prod_9")) as modify_product, \
                patch(f"{GATEWAY_MODULE}.stripe.Price.create", return_value=SimpleNamespace(id="price_2")):
            result = gateway.sync_catalog_entity(_offer(), SimpleNamespace(id="ver-2"), _offer_config(self.CONFIG), existing)

        create_product.assert_not_called()
        assert modify_product.call_args.args == ("prod_9",)
        assert result.parent_external_id == "prod_9"
        assert result.version_external_id == "price_2"

    def test_stripe_errors_are_wrapped(self, gateway):
        with patch(f"{GATEWAY_MODULE}.stripe.Product.create", side_effect=stripe.APIConnectionError("timed out")):
            with pytest.raises(BillingProviderError) as exc:
                gateway.sync_catalog_entity(_offer(), SimpleNamespace(id="ver-1"), _offer_config(self.CONFIG))

        assert exc.value.provider == "stripe"
        assert isinstance(exc.value.cause, stripe.APIConnectionError)


class TestPromotionSync:
    CONFIG = {"discount_type": "percent", "discount_value": 20}

    def test_creates_coupon_and_code(self, gateway):
        with patch(f"{GATEWAY_MODULE}.stripe.Coupon.create", return_value=SimpleNamespace(id="coupon_1")), \
                patch(f"{GATEWAY_MODULE}.stripe.PromotionCode.create", return_value=SimpleNamespace(id="promo_1")) as create_code:
            result = gateway.sync_discount_entity(
                _promotion(), SimpleNamespace(id="ver-1"), parse_promotion_config(self.CONFIG)
            )

        assert result.parent_external_id == "coupon_1"
        assert result.version_external_id == "promo_1"
        assert create_code.call_args.kwargs["code"] == "SPRING20"

    def test_code_collision_reuses_remote_code(self, gateway):
        collision = stripe.InvalidRequestError("An active promotion code with `code: SPRING20` already exists.", "code")

        with patch(f"{GATEWAY_MODULE}.stripe.Coupon.create", return_value=SimpleNamespace(id="coupon_1")), \
                patch(f"{GATEWAY_MODULE}.stripe.PromotionCode.create", side_effect=collision), \
                patch(f"{GATEWAY_MODULE}.stripe.PromotionCode.list", return_value=SimpleNamespace(data=[SimpleNamespace(id="promo_old")])), \
                patch(f"{GATEWAY_MODULE}.stripe.PromotionCode.modify", return_value=SimpleNamespace(id="promo_old")) as modify_code:
            result = gateway.sync_discount_entity(
                _promotion(), SimpleNamespace(id="ver-1"), parse_promotion_config(self.CONFIG)
            )

        assert result.version_external_id == "promo_old"
        assert modify_code.call_args.kwargs["active"] is True

    def test_collision_without_existing_code_fails(self, gateway):
        collision = stripe.InvalidRequestError("Invalid code", "code")

        with patch(f"{GATEWAY_MODULE}.stripe.Coupon.create", return_value=SimpleNamespace(id="coupon_1")), \
                patch(f"{GATEWAY_MODULE}.stripe.PromotionCode.create", side_effect=collision), \
                patch(f"{GATEWAY_MODULE}.stripe.PromotionCode.list", return_value=SimpleNamespace(data=[])):
            with pytest.raises(BillingProviderError):
                gateway.sync_discount_entity(
                    _promotion(), SimpleNamespace(id="ver-1"), parse_promotion_config(self.CONFIG)
                )


class TestDeactivation:
    def test_offer_product_set_inactive(self, gateway):
        with patch(f"{GATEWAY_MODULE}.stripe.Product.modify") as modify_product:
            gateway.deactivate_parent_resource("prod_1", kind="offer")

        assert modify_product.call_args.args == ("prod_1",)
        assert modify_product.call_args.kwargs["active"] is False

    def test_promotion_coupon_deleted(self, gateway):
        with patch(f"{GATEWAY_MODULE}.stripe.Coupon.delete") as delete_coupon:
            gateway.deactivate_parent_resource("coupon_1", kind="promotion")

        assert delete_coupon.call_args.args == ("coupon_1",)
