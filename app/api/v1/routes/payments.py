from __future__ import annotations
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_gateway
from app.core.config import settings
from app.core.errors import BookingValidationError, PayloadMalformed, ProviderError, SignatureInvalid, StoreError
from app.schemas.payments import CheckoutSessionCreate, CheckoutSessionOut, PaymentStatusOut, WebhookAck
from app.services.checkout_service import build_checkout_intent, get_payment_status, redirect_urls
from app.services.email_service import deliver_email
from app.services.reconciliation_service import handle_notification
from app.services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


@router.post("/criar-sessao-pagamento", response_model=CheckoutSessionOut)
def create_checkout_session(body: CheckoutSessionCreate, request: Request, gateway: StripeGateway = Depends(get_gateway)):
    base_url = settings.FRONTEND_URL or str(request.base_url)
    success_url, cancel_url = redirect_urls(base_url)
    try:
        session = build_checkout_intent(gateway, body, success_url=success_url, cancel_url=cancel_url)
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail={"error": e.message, "missing": e.missing, "invalid": e.invalid})
    except ProviderError as e:
        raise HTTPException(status_code=500, detail={"error": "Erro ao criar sessão de pagamento", "provider": str(e)})
    return CheckoutSessionOut(url=session.url, id=session.id)


@router.get("/verificar-pagamento/{session_id}", response_model=PaymentStatusOut)
def verify_payment(session_id: str, gateway: StripeGateway = Depends(get_gateway)):
    try:
        return PaymentStatusOut(**get_payment_status(gateway, session_id))
    except ProviderError as e:
        raise HTTPException(status_code=500, detail={"error": "Erro ao verificar pagamento", "provider": str(e)})


@router.post("/webhook", response_model=WebhookAck)
@router.post("/webhook-stripe", response_model=WebhookAck, include_in_schema=False)
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_gateway),
):
    # Signature is computed over the exact bytes; read them before anything parses JSON.
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    try:
        result = await run_in_threadpool(handle_notification, db, gateway, payload, sig_header)
    except SignatureInvalid as e:
        logger.warning("Stripe webhook signature verification failed: %s", e)
        raise HTTPException(status_code=400, detail={"error": "Invalid signature"})
    except PayloadMalformed as e:
        logger.error("Malformed Stripe webhook payload: %s", e)
        raise HTTPException(status_code=400, detail={"error": "Malformed payload"})
    except StoreError as e:
        logger.error("Could not commit Stripe webhook, Stripe will retry: %s", e)
        raise HTTPException(status_code=500, detail={"error": "Erro ao salvar agendamento"})

    if result.email_id:
        background_tasks.add_task(deliver_email, result.email_id)
    return WebhookAck(received=True)
