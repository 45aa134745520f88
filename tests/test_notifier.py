# tests/test_notifier.py
import logging
import smtplib

import pytest

from authcore.core.config import settings
from authcore.core.exceptions import DeliveryFailed
from authcore.services.notifier import (
    ConsoleNotifier,
    NotificationKind,
    SmtpNotifier,
    build_notifier,
    render_message,
)


class FakeSMTP:
    instances = []

    def __init__(self, host=None, port=None, timeout=None):
        self.host, self.port = host, port
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, mail):
        self.messages.append(mail)


class BrokenSMTP(FakeSMTP):
    def send_message(self, mail):
        raise smtplib.SMTPServerDisconnected("gone")


def smtp_settings(**overrides):
    values = {"EMAIL_BACKEND": "smtp", "SMTP_HOST": "mail.test", "SMTP_PORT": 2525, "SMTP_USE_TLS": True,
              "SMTP_USER": "mailer", "SMTP_PASSWORD": "pw"}
    values.update(overrides)
    return settings.model_copy(update=values)


def test_verification_link_points_at_backend():
    config = settings.model_copy(update={"BACKEND_URL": "https://api.test"})
    message = render_message(config, NotificationKind.VERIFY_EMAIL, {"token": "abc"})

    assert "https://api.test/auth/verify-email/abc" in message.text
    assert "https://api.test/auth/verify-email/abc" in message.html


def test_reset_link_points_at_frontend():
    config = settings.model_copy(update={"FRONTEND_URL": "https://app.test"})
    message = render_message(config, NotificationKind.PASSWORD_RESET, {"token": "xyz"})

    assert "https://app.test/reset-password?token=xyz" in message.text


def test_welcome_uses_name():
    message = render_message(settings, NotificationKind.WELCOME, {"name": "Ann"})
    assert "Ann" in message.text


def test_smtp_notifier_sends_multipart_mail(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)

    SmtpNotifier(smtp_settings()).notify("a@x.com", NotificationKind.VERIFY_EMAIL, {"token": "abc"})

    conn = FakeSMTP.instances[-1]
    assert (conn.host, conn.port) == ("mail.test", 2525)
    assert conn.started_tls is True
    assert conn.logged_in == ("mailer", "pw")
    mail = conn.messages[0]
    assert mail["To"] == "a@x.com"
    assert mail["Subject"] == "Verify Your Email Address"
    assert mail.is_multipart()


def test_smtp_failure_raises_delivery_failed(monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", BrokenSMTP)

    with pytest.raises(DeliveryFailed) as exc:
        SmtpNotifier(smtp_settings()).notify("a@x.com", NotificationKind.WELCOME, {"name": "Ann"})
    assert exc.value.status_code == 502


def test_build_notifier_selects_backend():
    assert isinstance(build_notifier(settings.model_copy(update={"EMAIL_BACKEND": "console"})), ConsoleNotifier)
    assert isinstance(build_notifier(smtp_settings()), SmtpNotifier)


def test_console_notifier_keeps_token_out_of_info_logs(caplog):
    notifier = ConsoleNotifier(settings)

    with caplog.at_level(logging.INFO, logger="authcore.services.notifier"):
        notifier.notify("a@x.com", NotificationKind.PASSWORD_RESET, {"token": "secret-token"})
    assert "a@x.com" in caplog.text
    assert "secret-token" not in caplog.text

    caplog.clear()
    with caplog.at_level(logging.DEBUG, logger="authcore.services.notifier"):
        notifier.notify("a@x.com", NotificationKind.PASSWORD_RESET, {"token": "secret-token"})
    assert "secret-token" in caplog.text
