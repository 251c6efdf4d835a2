"""
Stripe implementation of the billing gateway.

Offers map to a Product plus one immutable Price per version; promotions map
to a Coupon plus one PromotionCode per version.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import stripe

from catalog_service.domain.config.discount import (
    FixedAmountDiscount,
    FreeTrialDiscount,
    PercentDiscount,
    PromotionConfig,
)
from catalog_service.domain.config.pricing import (
    FlatPricing,
    OfferConfig,
    PerUnitPricing,
    Pricing,
    TieredPricing,
    VolumePricing,
)
from .base import BillingGateway, BillingProviderError, SyncResult


class StripeGateway(BillingGateway):
    name = "stripe"

    def __init__(self, *, api_key: str, timeout: int = 20, max_network_retries: int = 2):
        self.api_key = api_key
        self.timeout = timeout
        # Classic resources share one HTTP client; a timeout surfaces as APIConnectionError
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
        stripe.max_network_retries = max_network_retries

    # -------------------------------------------------
    # Offers
    # -------------------------------------------------
    def sync_catalog_entity(self, entity, version, config: OfferConfig, existing_parent_ref=None) -> SyncResult:
        metadata = self._metadata(entity, version)
        product_params: Dict[str, Any] = {"name": entity.name, "metadata": metadata}
        # Stripe rejects an empty description; omit it instead
        if entity.description:
            product_params["description"] = entity.description

        try:
            if existing_parent_ref is not None:
                product = stripe.Product.modify(
                    existing_parent_ref.external_id,
                    api_key=self.api_key,
                    **product_params,
                )
            else:
                product = stripe.Product.create(api_key=self.api_key, **product_params)

            price = stripe.Price.create(
                api_key=self.api_key,
                **build_price_params(product.id, config.pricing, metadata),
            )
        except stripe.StripeError as exc:
            raise self._wrap(exc, f"offer {entity.id} version {version.id}") from exc

        return SyncResult(parent_external_id=product.id, version_external_id=price.id)

    # -------------------------------------------------
    # Promotions
    # -------------------------------------------------
    def sync_discount_entity(self, entity, version, config: PromotionConfig, existing_parent_ref=None) -> SyncResult:
        metadata = self._metadata(entity, version)

        try:
            if existing_parent_ref is not None:
                # Discount terms on a coupon are immutable; only name/metadata move
                coupon = stripe.Coupon.modify(
                    existing_parent_ref.external_id,
                    api_key=self.api_key,
                    name=entity.name,
                    metadata=metadata,
                )
            else:
                coupon = stripe.Coupon.create(
                    api_key=self.api_key,
                    **build_coupon_params(entity.name, config, metadata),
                )

            promotion_code = self._create_promotion_code(entity, coupon.id, config, metadata)
        except stripe.StripeError as exc:
            raise self._wrap(exc, f"promotion {entity.id} version {version.id}") from exc

        return SyncResult(parent_external_id=coupon.id, version_external_id=promotion_code.id)

    def _create_promotion_code(self, entity, coupon_id: str, config: PromotionConfig, metadata: dict):
        params = build_promotion_code_params(entity.code, coupon_id, config, metadata)

        try:
            return stripe.PromotionCode.create(api_key=self.api_key, **params)
        except stripe.InvalidRequestError:
            # Code already taken remotely: reuse it instead of failing the publish
            existing = stripe.PromotionCode.list(api_key=self.api_key, code=entity.code, limit=1)
            if not existing.data:
                raise
            return stripe.PromotionCode.modify(
                existing.data[0].id,
                api_key=self.api_key,
                active=True,
                metadata=metadata,
            )

    # -------------------------------------------------
    # Archive
    # -------------------------------------------------
    def deactivate_parent_resource(self, external_id: str, *, kind: str = "offer") -> None:
        try:
            if kind == "promotion":
                # Coupons cannot be switched off; deleting stops new redemptions only
                stripe.Coupon.delete(external_id, api_key=self.api_key)
            else:
                stripe.Product.modify(external_id, api_key=self.api_key, active=False)
        except stripe.StripeError as exc:
            raise self._wrap(exc, f"{kind} resource {external_id}") from exc

    # -------------------------------------------------
    # Helpers
    # -------------------------------------------------
    @staticmethod
    def _metadata(entity, version) -> Dict[str, str]:
        return {
            f"catalog_{entity.kind}_id": entity.id,
            "catalog_version_id": version.id,
            "catalog_workspace_id": entity.workspace_id,
        }

    def _wrap(self, exc: "stripe.StripeError", subject: str) -> BillingProviderError:
        return BillingProviderError(
            f"Stripe rejected {subject}: {getattr(exc, 'user_message', None) or exc}",
            provider=self.name,
            code=getattr(exc, "code", None) or type(exc).__name__,
            cause=exc,
        )


def build_price_params(product_id: str, pricing: Pricing, metadata: Optional[dict] = None) -> Dict[str, Any]:
    """Shape a Stripe Price create request from a pricing variant."""
    params: Dict[str, Any] = {
        "product": product_id,
        "currency": pricing.currency.lower(),
        "metadata": metadata or {},
    }

    if pricing.is_recurring:
        params["recurring"] = {
            "interval": pricing.interval,
            "interval_count": pricing.interval_count,
            "usage_type": pricing.usage_type,
        }

    if isinstance(pricing, (FlatPricing, PerUnitPricing)):
        params["unit_amount"] = pricing.amount
    elif isinstance(pricing, (TieredPricing, VolumePricing)):
        params["billing_scheme"] = "tiered"
        params["tiers_mode"] = "volume" if isinstance(pricing, VolumePricing) else "graduated"
        params["tiers"] = [
            {
                "up_to": "inf" if tier.up_to is None else tier.up_to,
                "unit_amount": tier.unit_amount,
                **({"flat_amount": tier.flat_amount} if tier.flat_amount is not None else {}),
            }
            for tier in pricing.tiers
        ]
    else:
        raise TypeError(f"Unhandled pricing variant: {type(pricing).__name__}")

    return params


def build_coupon_params(name: str, config: PromotionConfig, metadata: Optional[dict] = None) -> Dict[str, Any]:
    params: Dict[str, Any] = {"name": name, "metadata": metadata or {}}
    discount = config.discount

    if isinstance(discount, PercentDiscount):
        params["percent_off"] = discount.percent_off
    elif isinstance(discount, FixedAmountDiscount):
        params["amount_off"] = discount.amount_off
        params["currency"] = discount.currency.lower()
    elif isinstance(discount, FreeTrialDiscount):
        # Trials are granted at checkout; Stripe has no coupon shape for them
        raise BillingProviderError(
            "Free-trial promotions cannot be mirrored as Stripe coupons",
            provider=StripeGateway.name,
            code="UNSUPPORTED_DISCOUNT",
        )
    else:
        raise TypeError(f"Unhandled discount variant: {type(discount).__name__}")

    if config.duration == "repeating":
        params["duration"] = "repeating"
        params["duration_in_months"] = config.duration_in_months
    else:
        params["duration"] = config.duration

    restrictions = config.restrictions
    if restrictions.max_redemptions:
        params["max_redemptions"] = restrictions.max_redemptions
    if restrictions.valid_until is not None:
        params["redeem_by"] = _epoch(restrictions.valid_until)

    return params


def build_promotion_code_params(code: str, coupon_id: str, config: PromotionConfig, metadata: Optional[dict] = None) -> Dict[str, Any]:
    restrictions = config.restrictions
    params: Dict[str, Any] = {
        "coupon": coupon_id,
        "code": code,
        "active": True,
        "metadata": metadata or {},
    }

    code_restrictions: Dict[str, Any] = {}
    if restrictions.max_redemptions_per_customer == 1:
        code_restrictions["first_time_transaction"] = True
    if restrictions.minimum_amount:
        code_restrictions["minimum_amount"] = restrictions.minimum_amount
        code_restrictions["minimum_amount_currency"] = (config.currency or "usd").lower()
    if code_restrictions:
        params["restrictions"] = code_restrictions

    if restrictions.max_redemptions:
        params["max_redemptions"] = restrictions.max_redemptions
    if restrictions.valid_until is not None:
        params["expires_at"] = _epoch(restrictions.valid_until)

    return params


def _epoch(value: datetime) -> int:
    return int(value.timestamp())
