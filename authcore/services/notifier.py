"""
services/notifier.py

메일 발송(Notification) 어댑터.

라이프사이클 서비스는 (수신 주소, 메시지 종류, 토큰/컨텍스트)만 넘기고,
제목/본문 구성과 실제 전송은 이 파일이 담당한다.

주요 기능:
- Notifier 프로토콜 정의
- SmtpNotifier    : SMTP 서버로 실제 메일 발송
- ConsoleNotifier : 메일 대신 로그로 출력 (로컬 개발용)
- 메시지 종류별 제목 / 본문 템플릿

설계 원칙:
- 재시도 없음. 실패하면 DeliveryFailed 를 그대로 호출자에게 전달
- 발송 실패 시에도 비밀번호 등 민감 정보는 로그에 남기지 않음

관련 파일:
- authcore.core.config        : SMTP / 링크 URL 설정
- authcore.services.auth      : 가입 / 인증 / 재설정 메일 발송

"""

import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from enum import Enum
from typing import Protocol

from authcore.core.config import Settings
from authcore.core.exceptions import DeliveryFailed

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    VERIFY_EMAIL = "verify_email"
    PASSWORD_RESET = "password_reset"
    WELCOME = "welcome"


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    text: str
    html: str


class Notifier(Protocol):
    def notify(self, address: str, kind: NotificationKind, context: dict) -> None:
        ...


"""
메시지 종류별 제목 / 본문 생성

- VERIFY_EMAIL   : BACKEND_URL 기준 인증 링크 (24시간 유효)
- PASSWORD_RESET : FRONTEND_URL 기준 재설정 링크 (1시간 유효)
- WELCOME        : 인증 완료 환영 메일

"""

def render_message(config: Settings, kind: NotificationKind, context: dict) -> RenderedMessage:
    year = datetime.now(timezone.utc).year
    footer = f"<p style=\"color:#888;font-size:12px\">&copy; {year}</p>"

    if kind == NotificationKind.VERIFY_EMAIL:
        url = f"{config.BACKEND_URL}/auth/verify-email/{context['token']}"
        hours = config.EMAIL_VERIFICATION_EXPIRE_HOURS
        return RenderedMessage(
            subject="Verify Your Email Address",
            text=f"Please verify your email by opening this link: {url}\nThis link will expire in {hours} hours.",
            html=(
                "<h1>Verify Your Email</h1>"
                "<p>Thank you for registering. Please open the link below to verify your email address:</p>"
                f"<p><a href=\"{url}\">{url}</a></p>"
                f"<p>This link will expire in {hours} hours.</p>"
                "<p>If you didn't create an account, please ignore this email.</p>"
                f"{footer}"
            ),
        )

    if kind == NotificationKind.PASSWORD_RESET:
        url = f"{config.FRONTEND_URL}/reset-password?token={context['token']}"
        hours = config.PASSWORD_RESET_EXPIRE_HOURS
        return RenderedMessage(
            subject="Reset Your Password",
            text=f"Reset your password by opening this link: {url}\nThis link will expire in {hours} hour(s).",
            html=(
                "<h1>Reset Your Password</h1>"
                "<p>We received a request to reset your password. Open the link below to reset it:</p>"
                f"<p><a href=\"{url}\">{url}</a></p>"
                f"<p>This link will expire in {hours} hour(s).</p>"
                "<p>If you didn't request a password reset, please ignore this email.</p>"
                f"{footer}"
            ),
        )

    if kind == NotificationKind.WELCOME:
        name = context.get("name") or "User"
        return RenderedMessage(
            subject="Welcome!",
            text=f"Welcome {name}! Your email has been verified successfully.",
            html=(
                "<h1>Welcome!</h1>"
                f"<p>Hello {name}!</p>"
                "<p>Your email has been successfully verified. You can now log in.</p>"
                f"{footer}"
            ),
        )

    raise ValueError(f"Unknown notification kind: {kind}")


class SmtpNotifier:
    def __init__(self, config: Settings):
        self._config = config

    def _build(self, address: str, message: RenderedMessage) -> EmailMessage:
        mail = EmailMessage()
        mail["From"] = self._config.EMAIL_FROM
        mail["To"] = address
        mail["Subject"] = message.subject
        mail.set_content(message.text)
        mail.add_alternative(message.html, subtype="html")
        return mail

    def notify(self, address: str, kind: NotificationKind, context: dict) -> None:
        mail = self._build(address, render_message(self._config, kind, context))
        try:
            with smtplib.SMTP(
                host=self._config.SMTP_HOST,
                port=self._config.SMTP_PORT,
                timeout=self._config.SMTP_TIMEOUT,
            ) as conn:
                if self._config.SMTP_USE_TLS:
                    conn.starttls()
                if self._config.SMTP_USER:
                    conn.login(self._config.SMTP_USER, self._config.SMTP_PASSWORD or "")
                conn.send_message(mail)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error sending %s email to %s: %s", kind.value, address, e)
            raise DeliveryFailed(f"Failed to send email: {type(e).__name__}") from e
        logger.info("Email %s sent to %s", kind.value, address)


class ConsoleNotifier:
    def __init__(self, config: Settings):
        self._config = config

    def notify(self, address: str, kind: NotificationKind, context: dict) -> None:
        message = render_message(self._config, kind, context)
        logger.info("[console email] to=%s subject=%s", address, message.subject)
        # 본문에는 1회용 토큰 링크가 포함되므로 DEBUG 에서만 출력
        logger.debug("[console email] body:\n%s", message.text)


def build_notifier(config: Settings) -> Notifier:
    if config.EMAIL_BACKEND == "console":
        return ConsoleNotifier(config)
    return SmtpNotifier(config)
