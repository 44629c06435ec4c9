"""
Celery tasks - email delivery and charge reconciliation reports.
"""

import asyncio
import logging
import smtplib
from datetime import datetime, timezone, timedelta
from email.message import EmailMessage

from app.config import get_settings
from app.queue.celery_app import celery_app
from app.services.notification_service import render_reset_email

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run async function from sync Celery task."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def build_reset_message(to: str, link: str, sender: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to
    message["Subject"] = "Your Password Reset Token"
    message.set_content(f"Reset your password: {link}")
    message.add_alternative(render_reset_email(link), subtype="html")
    return message


@celery_app.task(bind=True, max_retries=3)
def send_password_reset_email(self, email: str, link: str):
    """Deliver the reset link over SMTP. Retried on connection problems."""
    settings = get_settings()
    message = build_reset_message(email, link, settings.mail_from)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            if settings.smtp_username:
                smtp.starttls()
                smtp.login(settings.smtp_username, settings.smtp_password or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise self.retry(exc=exc, countdown=30)
    logger.info("Sent password reset email to %s", email)


async def _unreconciled_charges(older_than_seconds: int) -> list[dict]:
    from app.db.repositories.order_repository import ChargeRepository
    from app.db.session import async_session_maker

    cutoff = datetime.now(timezone.utc) - timedelta(seconds=older_than_seconds)
    async with async_session_maker() as session:
        records = await ChargeRepository(session).list_unreconciled(created_before=cutoff)
        return [
            {"charge_id": r.charge_id, "user_id": r.user_id, "amount_cents": r.amount_cents}
            for r in records
        ]


@celery_app.task
def report_unreconciled_charges():
    """Log every captured charge still without an order (beat schedule)."""
    stale = _run_async(_unreconciled_charges(get_settings().unreconciled_report_after_seconds))
    for charge in stale:
        logger.error(
            "Unreconciled charge %(charge_id)s for user %(user_id)s (%(amount_cents)s)", charge
        )
    return len(stale)
