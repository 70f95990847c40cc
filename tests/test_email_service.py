import smtplib

import pytest

from inala.core.config import settings
from inala.core.exceptions import ValidationError
from inala.db.mongo import MAIL_TRIGGERS
from inala.services import email_service as email_module, user_service
from inala.services.email_service import email_service, render_email_template


class DummySMTP:
    instances = []

    def __init__(self, host, port):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = False
        self.sent = []
        DummySMTP.instances.append(self)

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def sendmail(self, from_addr, to_addrs, msg):
        self.sent.append((from_addr, tuple(to_addrs), msg))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class DummySMTP_SSL(DummySMTP):
    pass


class FailingSMTP(DummySMTP):
    def login(self, username, password):
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")


@pytest.fixture
def smtp(monkeypatch):
    DummySMTP.instances = []
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(settings, "SMTP_USERNAME", "relay")
    monkeypatch.setattr(settings, "SMTP_PASSWORD", "secret")
    monkeypatch.setattr(settings, "SMTP_SECURITY", "starttls")
    monkeypatch.setattr(email_module.smtplib, "SMTP", DummySMTP)
    monkeypatch.setattr(email_module.smtplib, "SMTP_SSL", DummySMTP_SSL)
    return DummySMTP


def test_send_smtp_starttls(monkeypatch):
    DummySMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP", DummySMTP)
    email_module._send_smtp(
        host="smtp.example.com", port=587, username="user", password="pass",
        from_email="from@example.com", from_name="From Name", to_email="to@example.com",
        subject="Subj", html="<b>Body</b>", security="starttls",
    )
    server = DummySMTP.instances[-1]
    assert server.started_tls is True
    assert server.logged_in == ("user", "pass")
    assert server.sent[0][1] == ("to@example.com",)


def test_send_smtp_ssl(monkeypatch):
    DummySMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP_SSL", DummySMTP_SSL)
    email_module._send_smtp(
        host="smtp.example.com", port=465, username="user", password="pass",
        from_email="from@example.com", from_name=None, to_email="to@example.com",
        subject="Subj", html="<b>Body</b>", security="ssl",
    )
    server = DummySMTP.instances[-1]
    assert isinstance(server, DummySMTP_SSL)
    assert server.started_tls is False


def test_template_uses_logo_when_present():
    assert '<img src="https://cdn.example.com/logo.png"' in render_email_template(
        "Hi", "<p>Body</p>", "https://cdn.example.com/logo.png"
    )
    assert settings.APP_NAME in render_email_template("Hi", "<p>Body</p>")


async def test_send_email_is_skipped_without_relay(db):
    result = await email_service.send_email("to@example.com", "Subject", "<p>x</p>")
    assert result == {"success": True, "skipped": True}


async def test_send_email_reports_failure(db, smtp, monkeypatch):
    monkeypatch.setattr(email_module.smtplib, "SMTP", FailingSMTP)
    result = await email_service.send_email("to@example.com", "Subject", "<p>x</p>")
    assert result["success"] is False
    assert "bad credentials" in result["error"]


async def test_welcome_email_on_user_creation(business, smtp):
    await user_service.create_user({
        "name": "Palesa", "email": "palesa@example.com", "role": "CASHIER", "tenant_id": business["id"],
    })
    sent = smtp.instances[-1].sent
    assert sent[0][1] == ("palesa@example.com",)


async def test_role_change_creates_sent_trigger(db, admin, smtp):
    await user_service.change_user_role(admin["id"], "BRANCH_MANAGER")

    trigger = await db[MAIL_TRIGGERS].find_one({"type": "PERMISSION_CHANGE"})
    assert trigger["status"] == "SENT"
    assert trigger["data"]["role"] == "BRANCH_MANAGER"


async def test_unknown_trigger_is_ignored(db, smtp):
    trigger = await email_service.create_mail_trigger("NEWSLETTER", {"email": "a@example.com"})
    assert trigger["status"] == "IGNORED"
    assert smtp.instances == []


async def test_failed_trigger_records_error(db, smtp, monkeypatch):
    monkeypatch.setattr(email_module.smtplib, "SMTP", FailingSMTP)
    trigger = await email_service.create_mail_trigger(
        "PASSWORD_RESET", {"email": "a@example.com", "token": "abc"}
    )
    assert trigger["status"] == "FAILED"
    assert trigger["error"]


async def test_tenant_mailbox(business, smtp):
    sent = await email_service.send_tenant_email(business["id"], "client@example.com", "Invoice", "<p>Due</p>")
    assert sent["folder"] == "SENT"
    assert sent["status"] == "SENT"

    listed = await email_service.list_emails(business["id"], "SENT")
    assert [e["id"] for e in listed] == [sent["id"]]

    read = await email_service.mark_read(business["id"], sent["id"])
    assert read["status"] == "READ"

    with pytest.raises(ValidationError):
        await email_service.send_tenant_email(business["id"], "not-an-email", "Hi", "")
