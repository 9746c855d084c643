import html
import logging
import smtplib
import uuid
from datetime import datetime, timedelta, timezone
from email.message import EmailMessage

import requests
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import EmailError
from app.db.session import SessionLocal
from app.models.booking import Booking
from app.models.email_log import EmailLog

logger = logging.getLogger(__name__)

# Freshly queued rows belong to the request that queued them until this much time has passed.
QUEUED_GRACE_SECONDS = 60


def queue_email(db: Session, to_email: str, subject: str, html_body: str, related_booking_id: str = "") -> str:
    """Stage an outbox row in the caller's transaction and return its id.

    Nothing is sent here; call deliver_email(id) once the transaction is committed.
    """
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject,
            html=html_body,
            status="queued",
            related_booking_id=related_booking_id,
        )
    )
    return eid


def deliver_email(email_id: str) -> bool:
    """Send one queued email and record the outcome. Never raises for delivery failures.

    Runs after the HTTP response (FastAPI background task) or from the worker, so it opens its own session.
    """
    db: Session = SessionLocal()
    try:
        log = db.get(EmailLog, email_id)
        if not log or log.status == "sent":
            return False
        try:
            send_email(log.to_email, log.subject, log.html or "")
        except EmailError as e:
            logger.warning("Email %s to %s failed, worker will retry: %s", email_id, log.to_email, e)
            log.status = "failed"
            log.last_error = str(e)
            db.commit()
            return False
        log.status = "sent"
        log.sent_at = datetime.now(timezone.utc)
        log.last_error = None
        db.commit()
        return True
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not update email log %s", email_id)
        return False
    finally:
        db.close()


def send_email(to_email: str, subject: str, html_body: str):
    """Send email via SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, html_body)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content("Para ver esta mensagem abra-a num cliente de email com suporte a HTML.")
    msg.add_alternative(html_body, subtype="html")

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.EMAIL_TIMEOUT_SECONDS) as smtp:
            if settings.SMTP_USERNAME:
                smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise EmailError(f"SMTP error: {e}") from e


def _send_via_sendgrid(to_email: str, subject: str, html_body: str):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email},
        "subject": subject,
        "content": [{"type": "text/html", "value": html_body}],
    }
    try:
        r = requests.post(
            "https://api.sendgrid.com/v3/mail/send",
            json=payload,
            headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise EmailError(f"SendGrid request failed: {e}") from e
    if r.status_code >= 400:
        raise EmailError(f"SendGrid error {r.status_code}: {r.text}")


def render_booking_confirmation(b: Booking) -> tuple[str, str]:
    subject = "Reserva confirmada - Escola de Surf"
    amount = f"{b.amount_paid:.2f} {(b.currency or '').upper()}".strip() if b.amount_paid is not None else ""
    body = (
        f"<p>Olá {html.escape(b.customer_name)},</p>"
        f"<p>O seu pagamento foi recebido e a sua reserva está confirmada.</p>"
        f"<ul>"
        f"<li><strong>Aula:</strong> {html.escape(b.description or '')}</li>"
        f"<li><strong>Data:</strong> {html.escape(b.date_str)}</li>"
        f"<li><strong>Horário:</strong> {html.escape(b.time_slot)}</li>"
        + (f"<li><strong>Valor pago:</strong> {html.escape(amount)}</li>" if amount else "")
        + "</ul><p>Até breve e boas ondas!</p>"
    )
    return subject, body


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Process up to `limit` queued or failed emails; retry send and update status. Returns counts."""
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=QUEUED_GRACE_SECONDS)
    pending = (
        db.query(EmailLog)
        .filter(
            or_(EmailLog.status == "failed", and_(EmailLog.status == "queued", EmailLog.created_at < cutoff)),
            EmailLog.html.isnot(None),
            EmailLog.html != "",
        )
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        try:
            send_email(log.to_email, log.subject, log.html)
            log.status = "sent"
            log.sent_at = datetime.now(timezone.utc)
            log.last_error = None
            sent += 1
        except EmailError as e:
            log.status = "failed"
            log.last_error = str(e)
            failed += 1
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": failed}
