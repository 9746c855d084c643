from functools import lru_cache

from app.core.config import settings
from app.services.stripe_gateway import StripeConfig, StripeGateway


@lru_cache
def get_gateway() -> StripeGateway:
    """Process-wide Stripe binding, built from settings on first use."""
    return StripeGateway(StripeConfig(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        currency=settings.STRIPE_CURRENCY.lower(),
    ))
