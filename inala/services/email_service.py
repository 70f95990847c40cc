"""
inala/services/email_service.py

Purpose: Transactional email

- Renders the branded HTML layout
- Sends mail through an SMTP relay (starttls / ssl / plain)
- Welcome email on user creation
- Mail triggers (activation, password reset, permission change)
- Per-tenant inbox / sent folder
"""

import asyncio
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict, Any, Optional, List

from inala.core.config import settings
from inala.core.exceptions import ResourceNotFoundError, ValidationError
from inala.core.logging import get_logger
from inala.db.mongo import (
    get_collection, ensure_tenant_id, new_id, sanitize_document,
    EMAILS, MAIL_TRIGGERS,
)
from inala.domain.states import (
    MailTriggerType, MailTriggerStatus, EmailFolder, EmailStatus,
)
from inala.services.settings_service import get_system_logo
from utils import constants
from utils.validation_utils import validate_email

logger = get_logger(__name__)


def render_email_template(title: str, body_html: str, logo_url: Optional[str] = None) -> str:
    """
    Wraps a body fragment in the branded email layout.
    """
    if logo_url:
        header = f'<img src="{logo_url}" alt="{settings.APP_NAME}" />'
    else:
        header = f'<h1 style="color:white;margin:0;">{settings.APP_NAME}</h1>'

    return constants.EMAIL_LAYOUT.format(
        header=header,
        title=title,
        body=body_html,
        year=datetime.utcnow().year,
        app_name=settings.APP_NAME,
        contact=settings.SUPPORT_EMAIL,
    )


def _send_smtp(
    *,
    host: str,
    port: int,
    username: str,
    password: str,
    from_email: str,
    from_name: Optional[str],
    to_email: str,
    subject: str,
    html: str,
    security: str = "starttls",
) -> None:
    msg = MIMEMultipart("alternative")
    msg.attach(MIMEText(html, "html", "utf-8"))
    msg["Subject"] = subject
    msg["From"] = f"{from_name} <{from_email}>" if from_name else from_email
    msg["To"] = to_email

    if security == "ssl":
        with smtplib.SMTP_SSL(host, port) as server:
            server.login(username, password)
            server.sendmail(from_email, [to_email], msg.as_string())
    else:
        with smtplib.SMTP(host, port) as server:
            if security == "starttls":
                server.starttls()
            server.login(username, password)
            server.sendmail(from_email, [to_email], msg.as_string())


class EmailService:
    """Service for sending transactional email via the SMTP relay"""

    async def send_email(self, to_email: str, subject: str, html: str) -> Dict[str, Any]:
        """
        Sends one HTML email.

        Returns:
            {
                "success": True/False,
                "error": "Optional error message"
            }
        """
        if not settings.smtp_configured:
            # No relay configured; treat as a no-op success in development
            logger.info(f"SMTP not configured, skipping email to {to_email}: {subject}")
            return {"success": True, "skipped": True}

        try:
            logger.info(f"Sending email to {to_email}: {subject}")
            await asyncio.to_thread(
                _send_smtp,
                host=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME,
                password=settings.SMTP_PASSWORD,
                from_email=settings.SMTP_FROM,
                from_name=settings.APP_NAME,
                to_email=to_email,
                subject=subject,
                html=html,
                security=settings.SMTP_SECURITY,
            )
            return {"success": True}

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to_email}: {e}", exc_info=True)
            return {"success": False, "error": str(e)}

    async def send_welcome_email(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sends the welcome email to a newly created user.
        """
        if not user.get("email"):
            return {"success": False, "error": "User has no email"}

        logo_url = await get_system_logo()
        html = render_email_template(
            f"Welcome, {user.get('name') or user['email']}!",
            constants.WELCOME_BODY.format(app_url=settings.APP_URL),
            logo_url,
        )
        subject = constants.WELCOME_SUBJECT.format(app_name=settings.APP_NAME)

        result = await self.send_email(user["email"], subject, html)
        if result["success"]:
            logger.info(f"Welcome email sent to: {user['email']}")
        return result

    def _build_trigger_email(self, trigger: Dict[str, Any]) -> Optional[Dict[str, str]]:
        data = trigger.get("data") or {}
        trigger_type = trigger.get("type")

        if trigger_type == MailTriggerType.ACTIVATION_EMAIL.value:
            return {
                "subject": constants.ACTIVATION_SUBJECT,
                "body": constants.ACTIVATION_BODY.format(
                    name=data.get("name", ""), app_url=settings.APP_URL, token=trigger["id"]
                ),
            }
        if trigger_type == MailTriggerType.PASSWORD_RESET.value:
            return {
                "subject": constants.PASSWORD_RESET_SUBJECT,
                "body": constants.PASSWORD_RESET_BODY.format(
                    app_url=settings.APP_URL, token=data.get("token", "")
                ),
            }
        if trigger_type == MailTriggerType.PERMISSION_CHANGE.value:
            return {
                "subject": constants.PERMISSION_CHANGE_SUBJECT,
                "body": constants.PERMISSION_CHANGE_BODY.format(role=data.get("role", "")),
            }
        return None

    async def create_mail_trigger(self, trigger_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Stores a mail trigger and processes it straight away.
        """
        trigger = {
            "id": new_id("mt"),
            "type": str(getattr(trigger_type, "value", trigger_type)),
            "data": data,
            "status": MailTriggerStatus.PENDING.value,
            "created_at": datetime.utcnow(),
        }
        await get_collection(MAIL_TRIGGERS).insert_one(trigger)
        return await self.process_mail_trigger(trigger["id"])

    async def process_mail_trigger(self, trigger_id: str) -> Dict[str, Any]:
        """
        Sends the email for a pending trigger and records the outcome.

        Unknown trigger types are marked IGNORED and nothing is sent.
        """
        triggers = get_collection(MAIL_TRIGGERS)
        trigger = await triggers.find_one({"id": trigger_id})
        if not trigger:
            raise ResourceNotFoundError(f"Mail trigger '{trigger_id}' not found")

        content = self._build_trigger_email(trigger)
        if content is None:
            logger.warning(f"Ignoring mail trigger of unknown type {trigger.get('type')}")
            update = {"status": MailTriggerStatus.IGNORED.value}
        else:
            to_email = (trigger.get("data") or {}).get("email")
            html = render_email_template(content["subject"], content["body"], await get_system_logo())
            result = await self.send_email(to_email, content["subject"], html)

            if result["success"]:
                update = {"status": MailTriggerStatus.SENT.value, "sent_at": datetime.utcnow()}
            else:
                update = {"status": MailTriggerStatus.FAILED.value, "error": result.get("error")}

        updated = await triggers.find_one_and_update(
            {"id": trigger_id},
            {"$set": update},
            return_document=True
        )
        return sanitize_document(updated)

    async def list_emails(self, tenant_id: str, folder: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Lists a tenant's stored emails, newest first. Read failures
        return an empty list.
        """
        ensure_tenant_id(tenant_id, "list_emails")

        query: Dict[str, Any] = {"tenant_id": tenant_id}
        if folder:
            query["folder"] = EmailFolder(folder).value
        try:
            cursor = get_collection(EMAILS).find(query).sort("timestamp", -1)
            return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]
        except Exception as e:
            logger.error(f"list_emails failed: {e}", extra={"tenant_id": tenant_id})
            return []

    async def send_tenant_email(
        self,
        tenant_id: str,
        to_email: str,
        subject: str,
        body: str,
        from_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Sends an email on behalf of a tenant and files it under SENT.
        """
        ensure_tenant_id(tenant_id, "send_tenant_email")
        if not validate_email(to_email):
            raise ValidationError("A valid recipient email is required", details={"to": to_email})

        html = render_email_template(subject, body)
        result = await self.send_email(to_email, subject, html)

        message = {
            "id": new_id("em"),
            "tenant_id": tenant_id,
            "from": settings.SMTP_FROM,
            "from_name": from_name,
            "to": to_email,
            "subject": subject,
            "body": body,
            "timestamp": datetime.utcnow(),
            "status": EmailStatus.SENT.value if result["success"] else EmailStatus.FAILED.value,
            "folder": EmailFolder.SENT.value,
        }
        await get_collection(EMAILS).insert_one(message)
        return sanitize_document(message)

    async def mark_read(self, tenant_id: str, email_id: str) -> Dict[str, Any]:
        ensure_tenant_id(tenant_id, "mark_read")

        updated = await get_collection(EMAILS).find_one_and_update(
            {"tenant_id": tenant_id, "id": email_id},
            {"$set": {"status": EmailStatus.READ.value}},
            return_document=True
        )
        if not updated:
            raise ResourceNotFoundError(f"Email '{email_id}' not found")
        return sanitize_document(updated)


# Singleton instance
email_service = EmailService()
