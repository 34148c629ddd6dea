# app/services/email.py
"""
Outbound email.

`send_email` never raises: delivery is outside the consistency boundary of
the operation that triggered it, so failures are logged and reported as
False.
"""
import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import List, Optional, Tuple

from app.core.config import Settings

logger = logging.getLogger(__name__)

BRAND = "Musaada"


class Mailer:
    def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        raise NotImplementedError


class SmtpMailer(Mailer):
    def __init__(self, host: str, port: int, user: str, password: str, sender: str, timeout: float = 10.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def _build(self, to: str, subject: str, html: str, text: Optional[str]) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text or subject)
        msg.add_alternative(html, subtype="html")
        return msg

    def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        msg = self._build(to, subject, html, text)
        try:
            if self.port == 465:
                smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            with smtp:
                if self.port != 465:
                    smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to, e)
            return False

        logger.info("Email sent to %s: %s", to, subject)
        return True


class ConsoleMailer(Mailer):
    """Development mailer: logs the message instead of delivering it."""

    def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        logger.info("[console mail] to=%s subject=%s text=%s", to, subject, text or "")
        return True


class RecordingMailer(Mailer):
    """Keeps every message in memory; used by tests and local tooling."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.outbox: List[Tuple[str, str, str, Optional[str]]] = []

    def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        if self.fail:
            raise ConnectionError("mail server unreachable")
        self.outbox.append((to, subject, html, text))
        return True


def build_mailer(settings: Settings) -> Mailer:
    if not settings.email_host:
        logger.warning("EMAIL_HOST not set, emails will be logged instead of sent")
        return ConsoleMailer()
    return SmtpMailer(
        host=settings.email_host,
        port=settings.email_port,
        user=settings.email_user,
        password=settings.email_password,
        sender=settings.email_from,
    )


def deliver(mailer: Mailer, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
    """Send through `mailer`, swallowing anything it raises."""
    try:
        return bool(mailer.send_email(to, subject, html, text))
    except Exception as e:
        logger.error("Email delivery to %s failed: %s", to, e)
        return False


def _layout(title: str, body: str) -> str:
    return (
        '<!DOCTYPE html><html dir="rtl" lang="ar"><head><meta charset="UTF-8"></head>'
        '<body style="font-family: Cairo, sans-serif; background:#f5f5f5">'
        '<div style="max-width:600px;margin:20px auto;background:#fff;border-radius:8px">'
        f'<div style="background:#16a34a;color:#fff;padding:30px;text-align:center"><h1>{title}</h1></div>'
        f'<div style="padding:30px;text-align:right">{body}</div>'
        f'<div style="padding:20px;text-align:center;font-size:12px;color:#6b7280">© {BRAND}</div>'
        "</div></body></html>"
    )


def send_verification_email(mailer: Mailer, email: str, name: Optional[str], token: str, url: str) -> bool:
    body = (
        f"<p>السلام عليكم {escape(name or '')},</p>"
        f"<p>شكراً لتسجيلك في منصة {BRAND}. رمز التحقق الخاص بك:</p>"
        f'<p style="font-size:32px;font-weight:bold;letter-spacing:8px;text-align:center">{escape(token)}</p>'
        f'<p><a href="{escape(url, quote=True)}">التحقق من البريد الإلكتروني</a></p>'
        "<p>هذا الرمز صالح لمدة 24 ساعة فقط.</p>"
    )
    return deliver(
        mailer,
        email,
        f"تحقق من بريدك الإلكتروني - {BRAND}",
        _layout(f"مرحباً بك في {BRAND}", body),
        f"رمز التحقق الخاص بك: {token}\n{url}",
    )


def send_booking_confirmation_email(
    mailer: Mailer,
    email: str,
    customer_name: Optional[str],
    service_name: str,
    booking_date: str,
    start_time: str,
    total_price: str,
) -> bool:
    body = (
        f"<p>السلام عليكم {escape(customer_name or '')},</p>"
        "<p>تم استلام حجزك بنجاح.</p>"
        f"<p>الخدمة: {escape(service_name)}<br>التاريخ: {escape(booking_date)}<br>"
        f"الوقت: {escape(start_time)}<br>السعر الإجمالي: {escape(total_price)} ريال</p>"
    )
    return deliver(
        mailer,
        email,
        f"تأكيد الحجز - {BRAND}",
        _layout("تم تأكيد حجزك", body),
        f"تم تأكيد حجزك للخدمة: {service_name} في {booking_date} الساعة {start_time}",
    )


STATUS_MESSAGES = {
    "pending": "حجزك قيد المراجعة",
    "confirmed": "تم تأكيد حجزك من مقدم الخدمة",
    "in_progress": "الخدمة قيد التنفيذ",
    "completed": "تم إكمال الخدمة",
    "cancelled": "تم إلغاء الحجز",
}


def send_booking_status_email(
    mailer: Mailer, email: str, customer_name: Optional[str], service_name: str, status: str
) -> bool:
    status_message = STATUS_MESSAGES.get(status, status)
    body = (
        f"<p>السلام عليكم {escape(customer_name or '')},</p>"
        f"<p>تم تحديث حالة حجزك للخدمة <strong>{escape(service_name)}</strong></p>"
        f"<p><strong>{escape(status_message)}</strong></p>"
    )
    return deliver(
        mailer,
        email,
        f"تحديث حالة الحجز: {status_message} - {BRAND}",
        _layout("تحديث حالة الحجز", body),
        f"تم تحديث حالة حجزك: {status_message}",
    )


def send_new_review_email(
    mailer: Mailer, email: str, provider_name: Optional[str], customer_name: Optional[str], rating: int, comment: Optional[str]
) -> bool:
    body = (
        f"<p>السلام عليكم {escape(provider_name or '')},</p>"
        f"<p>تلقيت تقييماً جديداً من {escape(customer_name or '')}</p>"
        f"<p>{'⭐' * rating} ({rating} من 5)</p>"
    )
    if comment:
        body += f"<p><em>\"{escape(comment)}\"</em></p>"
    return deliver(
        mailer,
        email,
        f"تقييم جديد من {customer_name or ''} - {BRAND}",
        _layout("تقييم جديد من عميل", body),
        f"تلقيت تقييماً جديداً: {rating} نجوم",
    )
