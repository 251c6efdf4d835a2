from flask import current_app

from catalog_service.domain.exceptions import ValidationError
from .base import BillingGateway

EXTENSION_KEY = "billing_gateway"


def init_billing(app):
    """
    Build the configured gateway and register it on the app.

    A missing key leaves no gateway registered; publishing then fails
    validation instead of silently skipping the remote mirror.
    """
    provider = app.config.get("BILLING_PROVIDER")

    if provider == "stripe" and app.config.get("STRIPE_SECRET_KEY"):
        from .stripe_gateway import StripeGateway

        app.extensions[EXTENSION_KEY] = StripeGateway(
            api_key=app.config["STRIPE_SECRET_KEY"],
            timeout=app.config.get("PROVIDER_TIMEOUT_SECONDS", 20),
        )
    elif provider not in (None, "stripe"):
        app.logger.warning("Unsupported billing provider %r; catalog publishing disabled", provider)


def get_billing_gateway() -> BillingGateway:
    gateway = current_app.extensions.get(EXTENSION_KEY)
    if gateway is None:
        raise ValidationError(
            "Cannot publish: no billing provider is configured. Check your billing settings.",
            field="billing_provider",
        )
    return gateway
