"""
services/auth.py

인증(Authentication) 라이프사이클 서비스.

이 파일은 회원 가입, 이메일 인증, 로그인, 토큰 재발급, 로그아웃,
비밀번호 찾기/재설정을 계정(Account) 상태 전이로 구현한다.
라우터는 검증된 입력만 넘기고, 결과 또는 AuthError 예외를 돌려받는다.

주요 기능:
- 회원 가입 + 인증 메일 발송
- 로그인 (Access / Refresh Token 쌍 발급)
- Refresh Token 회전(rotation) 기반 재발급
- 로그아웃 (Refresh Token 무효화)
- 이메일 인증 / 인증 메일 재발송
- 비밀번호 찾기 / 재설정

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 저장소 / 해시 / 토큰 / 메일 발송 객체는 생성자로 명시적으로 주입
- 계정 하나에 대한 변경은 저장소의 단일 UPDATE로 원자적으로 적용
- 1회용 토큰은 사용 즉시 제거, Refresh Token은 발급할 때마다 이전 값 무효화
- 로그인 실패 / 비밀번호 찾기는 계정 존재 여부를 응답으로 드러내지 않음
- 메일 발송 실패는 재시도하지 않고 DeliveryFailed로 호출자에게 전달

관련 파일:
- authcore.repositories.accounts  : 계정 저장소
- authcore.core.security          : 비밀번호 해시 / 토큰 발급
- authcore.services.notifier      : 메일 발송
- authcore.routers.auth           : 인증 API

"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from authcore.core.exceptions import (
    AccountNotActive,
    AlreadyVerified,
    DuplicateAccount,
    EmailNotVerified,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidToken,
    NotFound,
    TokenExpired,
)
from authcore.core.security import TokenPair, TokenPayload
from authcore.models.account import Account, AccountRole, AccountStatus
from authcore.schemas.account import AccountPublic
from authcore.services.notifier import NotificationKind, Notifier
from authcore.services.protocols import AccountStore, PasswordHasher, TokenIssuer

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Registration successful! Please check your email to verify your account."
VERIFIED_MESSAGE = "Email verified successfully! You can now login."
RESENT_MESSAGE = "Verification email sent successfully"
FORGOT_MESSAGE = "If an account exists with this email, a password reset link has been sent."
RESET_MESSAGE = "Password reset successfully. Please login with your new password."
LOGOUT_MESSAGE = "Logged out successfully"


@dataclass(frozen=True)
class MessageResult:
    message: str


@dataclass(frozen=True)
class RegistrationResult:
    account_id: uuid.UUID
    message: str = REGISTERED_MESSAGE


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    account: AccountPublic
    token_type: str = "bearer"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# 이메일은 앞뒤 공백 제거 + 소문자로 통일하여 저장/조회
def normalize_email(email: str) -> str:
    return email.strip().lower()


# SQLite 등 timezone 정보를 보존하지 않는 DB에서 읽은 값은 UTC로 간주
def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_account_id(value) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def sanitize(account: Account) -> AccountPublic:
    return AccountPublic.model_validate(account)


class AuthService:
    def __init__(
        self,
        accounts: AccountStore,
        hasher: PasswordHasher,
        signer: TokenIssuer,
        notifier: Notifier,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._accounts = accounts
        self._hasher = hasher
        self._signer = signer
        self._notifier = notifier
        self._clock = clock

    # 만료 시각이 현재 시각과 같으면 만료로 취급
    def _is_expired(self, expires_at: datetime | None) -> bool:
        return expires_at is None or as_utc(expires_at) <= self._clock()

    def _issue_tokens(self, account: Account) -> TokenPair:
        payload = TokenPayload(
            account_id=str(account.id),
            email=account.email,
            role=AccountRole(account.role).value,
        )
        return self._signer.create_pair(payload)

    """
    회원 가입

    - 활성 계정 중 같은 이메일이 있으면 DuplicateAccount
    - 비밀번호 해시 후 INACTIVE / 미인증 상태로 생성
    - 이메일 인증 토큰(24시간)을 함께 저장하고 인증 메일 발송
    - 메일 발송 실패 시 DeliveryFailed (계정은 남아 있으므로 재발송으로 복구 가능)
    - 응답에 인증 토큰은 포함하지 않음

    """
    def register(self, email: str, password: str, first_name: str | None = None,
                 last_name: str | None = None) -> RegistrationResult:
        email = normalize_email(email)
        if self._accounts.get_by_email(email):
            raise DuplicateAccount()

        token = self._signer.create_opaque_token()
        account = self._accounts.create(
            email=email,
            password_hash=self._hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            role=AccountRole.USER,
            status=AccountStatus.INACTIVE,
            is_email_verified=False,
            email_verification_token=token,
            email_verification_expires_at=self._signer.verification_expiry(self._clock()),
        )
        account_id = account.id
        logger.info("Account registered: %s", account_id)

        self._notifier.notify(email, NotificationKind.VERIFY_EMAIL, {"token": token})
        return RegistrationResult(account_id=account_id)

    """
    로그인

    - 이메일 없음 / 비밀번호 불일치 모두 InvalidCredentials (동일한 응답, 동일한 bcrypt 비용)
    - 이메일 미인증이면 EmailNotVerified
    - ACTIVE 상태가 아니면 AccountNotActive
    - Access / Refresh Token 발급 후 Refresh 다이제스트와 마지막 로그인 시각을 한 번에 저장

    """
    def login(self, email: str, password: str) -> LoginResult:
        account = self._accounts.get_by_email(normalize_email(email))
        if not account:
            self._hasher.dummy_verify(password)
            raise InvalidCredentials()

        if not self._hasher.verify(password, account.password_hash):
            raise InvalidCredentials()

        if not account.is_email_verified:
            raise EmailNotVerified()

        if account.status != AccountStatus.ACTIVE:
            raise AccountNotActive()

        tokens = self._issue_tokens(account)
        self._accounts.update_fields(
            account.id,
            refresh_token_hash=self._signer.digest(tokens.refresh_token),
            last_login_at=self._clock(),
        )
        logger.info("Account logged in: %s", account.id)

        return LoginResult(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            account=sanitize(account),
        )

    """
    토큰 재발급

    - 저장된 Refresh 다이제스트가 없거나 제시된 토큰과 다르면 InvalidRefreshToken
    - 정지(SUSPENDED) 등 ACTIVE가 아닌 계정은 AccountNotActive
    - 새 토큰 쌍 발급 후 다이제스트 교체 (이전 Refresh Token 즉시 무효)
    - 교체 시점에 다이제스트가 이미 바뀌어 있으면(동시 재발급) InvalidRefreshToken

    """
    def refresh(self, account_id, refresh_token: str) -> TokenPair:
        parsed = parse_account_id(account_id)
        account = self._accounts.get_by_id(parsed) if parsed else None
        if not account or not account.refresh_token_hash:
            raise InvalidRefreshToken()

        current_hash = account.refresh_token_hash
        if not self._signer.matches_digest(refresh_token, current_hash):
            raise InvalidRefreshToken()

        if account.status != AccountStatus.ACTIVE:
            raise AccountNotActive()

        tokens = self._issue_tokens(account)
        swapped = self._accounts.swap_refresh_token_hash(
            account.id, current_hash, self._signer.digest(tokens.refresh_token)
        )
        if not swapped:
            raise InvalidRefreshToken()

        logger.info("Refresh token rotated: %s", account.id)
        return tokens

    # 로그아웃: 이미 로그아웃된 계정이어도 그대로 성공
    def logout(self, account_id) -> MessageResult:
        parsed = parse_account_id(account_id)
        if parsed:
            self._accounts.set_refresh_token_hash(parsed, None)
        return MessageResult(message=LOGOUT_MESSAGE)

    """
    이메일 인증

    - 토큰에 해당하는 계정이 없으면 InvalidToken
    - 만료되었으면 TokenExpired (계정은 그대로 두고 재발송 요청 필요)
    - 인증 완료 처리: is_email_verified=True, status=ACTIVE, 토큰 제거
    - 환영 메일 발송 (실패 시 DeliveryFailed)

    """
    def verify_email(self, token: str) -> MessageResult:
        account = self._accounts.get_by_verification_token(token)
        if not account:
            raise InvalidToken("Invalid verification token")

        if self._is_expired(account.email_verification_expires_at):
            raise TokenExpired("Verification token has expired")

        email, name = account.email, account.first_name or "User"
        if not self._accounts.mark_email_verified(account.id, token):
            raise InvalidToken("Invalid verification token")
        logger.info("Email verified: %s", account.id)

        self._notifier.notify(email, NotificationKind.WELCOME, {"name": name})
        return MessageResult(message=VERIFIED_MESSAGE)

    def resend_verification(self, email: str) -> MessageResult:
        account = self._accounts.get_by_email(normalize_email(email))
        if not account:
            raise NotFound()

        if account.is_email_verified:
            raise AlreadyVerified()

        token = self._signer.create_opaque_token()
        self._accounts.set_verification_token(account.id, token, self._signer.verification_expiry(self._clock()))
        self._notifier.notify(account.email, NotificationKind.VERIFY_EMAIL, {"token": token})
        return MessageResult(message=RESENT_MESSAGE)

    """
    비밀번호 찾기

    - 계정 유무와 관계없이 같은 메시지 반환 (계정 존재 여부 노출 방지)
    - 계정이 있으면 재설정 토큰(1시간) 저장 후 메일 발송
      (이전에 발급된 재설정 토큰은 덮어써서 무효화)

    """
    def forgot_password(self, email: str) -> MessageResult:
        account = self._accounts.get_by_email(normalize_email(email))
        if account:
            token = self._signer.create_opaque_token()
            self._accounts.set_reset_token(account.id, token, self._signer.reset_expiry(self._clock()))
            self._notifier.notify(account.email, NotificationKind.PASSWORD_RESET, {"token": token})
            logger.info("Password reset requested: %s", account.id)
        return MessageResult(message=FORGOT_MESSAGE)

    """
    비밀번호 재설정

    - 토큰에 해당하는 계정이 없으면 InvalidToken, 만료되었으면 TokenExpired
    - 새 비밀번호 해시 저장 + 재설정 토큰 제거 + Refresh 다이제스트 제거를 한 번에 적용
      (모든 기기에서 다시 로그인 필요)

    """
    def reset_password(self, token: str, new_password: str) -> MessageResult:
        account = self._accounts.get_by_reset_token(token)
        if not account:
            raise InvalidToken("Invalid or expired reset token")

        if self._is_expired(account.password_reset_expires_at):
            raise TokenExpired("Reset token has expired")

        if not self._accounts.reset_password(account.id, token, self._hasher.hash(new_password)):
            raise InvalidToken("Invalid or expired reset token")
        logger.info("Password reset completed: %s", account.id)

        return MessageResult(message=RESET_MESSAGE)
