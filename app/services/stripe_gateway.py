import json
import logging
from dataclasses import dataclass

import stripe

from app.core.errors import PayloadMalformed, ProviderError, SignatureInvalid

logger = logging.getLogger(__name__)


@dataclass
class StripeConfig:
    api_key: str            # sk_live_... / sk_test_...
    webhook_secret: str     # whsec_... from the Stripe dashboard endpoint
    currency: str = "eur"
    tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE  # seconds a signed timestamp stays valid


@dataclass
class CheckoutSessionRef:
    id: str
    url: str


class StripeGateway:
    """Thin binding over the Stripe Checkout and webhook APIs.

    One instance per process; the API key is passed per call so no global
    ``stripe.api_key`` state is touched.
    """

    def __init__(self, cfg: StripeConfig):
        self.cfg = cfg

    def create_checkout_session(
        self,
        *,
        product_name: str,
        unit_amount: int,
        customer_email: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
    ) -> CheckoutSessionRef:
        try:
            session = stripe.checkout.Session.create(
                api_key=self.cfg.api_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "quantity": 1,
                        "price_data": {
                            "currency": self.cfg.currency,
                            "unit_amount": unit_amount,
                            "product_data": {"name": product_name},
                        },
                    }
                ],
                customer_email=customer_email,
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session creation failed: %s", e)
            raise ProviderError(getattr(e, "user_message", None) or str(e)) from e
        return CheckoutSessionRef(id=session.id, url=session.url)

    def retrieve_session(self, session_id: str):
        try:
            return stripe.checkout.Session.retrieve(session_id, api_key=self.cfg.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe session lookup failed for %s: %s", session_id, e)
            raise ProviderError(getattr(e, "user_message", None) or str(e)) from e

    def verify_event(self, payload: bytes, sig_header: str | None):
        """Authenticate the untouched request body and return it JSON-decoded.

        ``payload`` must be the exact bytes received; re-encoded JSON will not verify.
        The decoded value is not guaranteed to be an object; parse_event checks its shape.
        """
        if not sig_header:
            raise SignatureInvalid("missing Stripe-Signature header")
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureInvalid("payload is not UTF-8") from e
        try:
            stripe.WebhookSignature.verify_header(body, sig_header, self.cfg.webhook_secret, tolerance=self.cfg.tolerance)
        except stripe.SignatureVerificationError as e:
            raise SignatureInvalid(str(e)) from e
        try:
            return json.loads(body)
        except ValueError as e:
            # Signature matched but the body is not JSON.
            raise PayloadMalformed(f"invalid payload: {e}") from e
