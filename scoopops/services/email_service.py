"""Transactional email for customers and the operations inbox.

Messages go out over SMTP through ``aiosmtplib``. With no ``SMTP_HOST``
configured every send is logged and treated as delivered, which is how
local development and the test suite run.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from email.message import EmailMessage
from typing import TYPE_CHECKING

from scoopops.core.config import settings

if TYPE_CHECKING:
    from scoopops.models.customer import Customer
    from scoopops.models.payment import Payment
    from scoopops.schemas.coverage import CoverageRiskReport

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")
_TAG_RE = re.compile(r"<[^>]+>")


def _format_amount(value: Decimal | int | float | str | None) -> str:
    if value is None:
        return "0.00"
    return str(Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def _format_date(value: date | datetime | None) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def _compose(to: str, subject: str, html_body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to
    msg["Subject"] = subject
    # Plain-text part for clients that refuse HTML.
    msg.set_content(_TAG_RE.sub("", html_body).strip() or subject)
    msg.add_alternative(html_body, subtype="html")
    return msg


class EmailService:
    async def send_email(self, to: str, subject: str, html_body: str) -> bool:
        """Deliver one message. SMTP errors propagate to the caller."""
        if not settings.SMTP_HOST:
            logger.info("SMTP disabled, not sending %r to %s", subject, to)
            return True

        import aiosmtplib

        await aiosmtplib.send(
            _compose(to, subject, html_body),
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=settings.SMTP_USE_TLS,
        )
        logger.info("Sent %r to %s", subject, to)
        return True

    async def _send_to_customer(
        self, customer: Customer, subject: str, heading: str, paragraphs: list[str]
    ) -> bool:
        if not customer.email:
            logger.warning("Customer %s has no email address, dropped %r", customer.id, subject)
            return False
        body = "".join(f"<p>{p}</p>" for p in paragraphs)
        html_body = f"<h2>{heading}</h2><p>Hi {customer.name or 'there'},</p>{body}"
        return await self.send_email(to=str(customer.email), subject=subject, html_body=html_body)

    async def send_payment_failed_email(
        self,
        customer: Customer,
        payment: Payment,
        next_retry_at: datetime | None = None,
    ) -> bool:
        paragraphs = [
            f"We were unable to collect your payment of "
            f"${_format_amount(payment.amount)} {payment.currency}."
        ]
        if next_retry_at is not None:
            paragraphs.append(f"We will automatically try again on {_format_date(next_retry_at)}.")
        paragraphs.append("Please make sure the card on file is up to date.")
        return await self._send_to_customer(
            customer, "Payment failed", "Your payment didn't go through", paragraphs
        )

    async def send_service_suspended_email(self, customer: Customer, payment: Payment) -> bool:
        """Sent once retries run out and the subscription has been cancelled."""
        return await self._send_to_customer(
            customer,
            "Service suspended: payment required",
            "Your service has been suspended",
            [
                f"After several attempts we were unable to collect "
                f"${_format_amount(payment.amount)} {payment.currency}, so your "
                f"subscription has been cancelled and visits are on hold.",
                "Reply to this email or update your payment details to restart service.",
            ],
        )

    async def send_payment_action_required_email(
        self,
        customer: Customer,
        action_url: str | None = None,
    ) -> bool:
        paragraphs = [
            "Your bank needs you to confirm your latest payment before we can collect it."
        ]
        if action_url:
            paragraphs.append(f'<a href="{action_url}">Complete your payment</a>')
        return await self._send_to_customer(
            customer,
            "Action required: confirm your payment",
            "Action required to complete your payment",
            paragraphs,
        )

    async def send_coverage_gap_admin_email(self, report: CoverageRiskReport) -> bool:
        """One message listing every uncovered zip code, highest priority first."""
        if not settings.ADMIN_EMAIL:
            logger.warning("ADMIN_EMAIL not configured, coverage report not emailed")
            return False

        rows = "".join(
            f"<tr><td>{gap.zip_code}</td><td>{gap.customer_count}</td>"
            f"<td>{gap.priority.value}</td></tr>"
            for gap in report.uncovered
        )
        html_body = (
            f"<h2>Coverage gaps detected</h2>"
            f"<p>{report.uncovered_zip_count} zip code(s) with active customers have no "
            f"active scooper coverage, affecting {report.at_risk_customer_count} "
            f"customer(s).</p>"
            f"<table><tr><th>Zip code</th><th>Customers</th><th>Priority</th></tr>"
            f"{rows}</table>"
        )
        return await self.send_email(
            to=settings.ADMIN_EMAIL,
            subject=f"Coverage gaps in {report.uncovered_zip_count} zip code(s)",
            html_body=html_body,
        )

    async def send_coverage_gap_customer_email(self, customer: Customer) -> bool:
        return await self._send_to_customer(
            customer,
            "Service update for your area",
            "We're finding a new scooper for your area",
            [
                f"There is currently no scooper assigned to zip code {customer.zip_code}. "
                f"Upcoming visits may be delayed while we arrange coverage. You will not "
                f"be charged for missed visits."
            ],
        )
