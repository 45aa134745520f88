"""
인증 라이프사이클 서비스 테스트.
- 가입 / 인증 / 로그인 / 재발급 / 로그아웃 / 비밀번호 찾기·재설정의 상태 전이,
  1회용 토큰, Refresh 회전, 만료 경계, 계정 존재 여부 비노출, Soft Delete 를 검증한다.
"""

import pytest

from authcore.core.exceptions import (
    AccountNotActive,
    AlreadyVerified,
    DeliveryFailed,
    DuplicateAccount,
    EmailNotVerified,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidToken,
    NotFound,
    TokenExpired,
)
from authcore.core.security import CredentialHasher, TokenDomain
from authcore.models.account import AccountRole, AccountStatus
from authcore.repositories.accounts import AccountRepository
from authcore.services.auth import AuthService, FORGOT_MESSAGE
from authcore.services.notifier import NotificationKind

from tests.helpers import unique_email

PASSWORD = "Secret123!"


def register_verified(service, notifier, email=None):
    email = email or unique_email()
    result = service.register(email, PASSWORD)
    service.verify_email(notifier.last_token(NotificationKind.VERIFY_EMAIL))
    return result.account_id, email


# ---- 회원 가입 ----

def test_register_creates_inactive_unverified_account(service, repo, notifier, clock):
    result = service.register("A@X.com ", PASSWORD, first_name="Ann")

    account = repo.get_by_id(result.account_id)
    assert account.email == "a@x.com"
    assert account.status == AccountStatus.INACTIVE
    assert account.is_email_verified is False
    assert account.role == AccountRole.USER
    assert account.refresh_token_hash is None

    # 토큰은 결과에 포함되지 않고 메일로만 전달
    assert not hasattr(result, "token")
    sent = notifier.of_kind(NotificationKind.VERIFY_EMAIL)
    assert len(sent) == 1
    assert sent[0].address == "a@x.com"
    assert sent[0].context["token"] == account.email_verification_token


def test_register_stores_hash_not_plaintext(service, repo):
    result = service.register(unique_email(), PASSWORD)
    account = repo.get_by_id(result.account_id)

    assert account.password_hash
    assert account.password_hash != PASSWORD
    assert CredentialHasher(rounds=4).verify(PASSWORD, account.password_hash)


def test_register_duplicate_email(service):
    email = unique_email()
    service.register(email, PASSWORD)

    with pytest.raises(DuplicateAccount):
        service.register(email.upper(), "Another123!")


def test_register_delivery_failure_is_surfaced(service, notifier):
    notifier.fail = True
    with pytest.raises(DeliveryFailed):
        service.register(unique_email(), PASSWORD)


# ---- 이메일 인증 ----

def test_verify_email_activates_account(service, repo, notifier):
    result = service.register(unique_email(), PASSWORD, first_name="Ann")
    token = notifier.last_token(NotificationKind.VERIFY_EMAIL)

    service.verify_email(token)

    account = repo.get_by_id(result.account_id)
    assert account.is_email_verified is True
    assert account.status == AccountStatus.ACTIVE
    assert account.email_verification_token is None
    assert account.email_verification_expires_at is None

    welcome = notifier.of_kind(NotificationKind.WELCOME)
    assert welcome[-1].context["name"] == "Ann"


def test_verify_email_token_is_single_use(service, notifier):
    service.register(unique_email(), PASSWORD)
    token = notifier.last_token(NotificationKind.VERIFY_EMAIL)

    service.verify_email(token)
    with pytest.raises(InvalidToken):
        service.verify_email(token)


def test_verify_email_unknown_token(service):
    with pytest.raises(InvalidToken):
        service.verify_email("does-not-exist")


def test_verify_email_expiry_boundary_one_second_before(service, repo, notifier, clock):
    result = service.register(unique_email(), PASSWORD)
    token = notifier.last_token(NotificationKind.VERIFY_EMAIL)

    clock.advance(hours=24, seconds=-1)
    service.verify_email(token)
    assert repo.get_by_id(result.account_id).is_email_verified is True


@pytest.mark.parametrize("extra_seconds", [0, 1])
def test_verify_email_expiry_boundary_expired(service, repo, notifier, clock, extra_seconds):
    result = service.register(unique_email(), PASSWORD)
    token = notifier.last_token(NotificationKind.VERIFY_EMAIL)

    clock.advance(hours=24, seconds=extra_seconds)
    with pytest.raises(TokenExpired):
        service.verify_email(token)

    # 만료된 경우 계정은 그대로
    account = repo.get_by_id(result.account_id)
    assert account.is_email_verified is False
    assert account.email_verification_token == token


def test_verify_email_welcome_delivery_failure_is_surfaced(service, notifier):
    service.register(unique_email(), PASSWORD)
    token = notifier.last_token(NotificationKind.VERIFY_EMAIL)

    notifier.fail = True
    with pytest.raises(DeliveryFailed):
        service.verify_email(token)


# ---- 인증 메일 재발송 ----

def test_resend_verification_replaces_token(service, notifier):
    email = unique_email()
    service.register(email, PASSWORD)
    first = notifier.last_token(NotificationKind.VERIFY_EMAIL)

    service.resend_verification(email)
    second = notifier.last_token(NotificationKind.VERIFY_EMAIL)

    assert first != second
    with pytest.raises(InvalidToken):
        service.verify_email(first)
    service.verify_email(second)


def test_resend_verification_edge_cases(service, notifier):
    with pytest.raises(NotFound):
        service.resend_verification(unique_email())

    _, email = register_verified(service, notifier)
    with pytest.raises(AlreadyVerified):
        service.resend_verification(email)


# ---- 로그인 ----

def test_login_issues_pair_and_stores_digest(service, repo, signer, notifier, clock):
    account_id, email = register_verified(service, notifier)

    result = service.login(email, PASSWORD)

    payload = signer.verify(result.access_token, TokenDomain.ACCESS)
    assert payload.account_id == str(account_id)
    assert payload.email == email
    assert payload.role == "user"
    assert signer.verify(result.refresh_token, TokenDomain.REFRESH) == payload

    account = repo.get_by_id(account_id)
    assert account.refresh_token_hash == signer.digest(result.refresh_token)
    assert account.last_login_at is not None

    public = result.account.model_dump()
    for field in ("password_hash", "refresh_token_hash", "email_verification_token", "password_reset_token"):
        assert field not in public
    assert public["email"] == email


def test_login_unknown_email_and_wrong_password_look_the_same(service, notifier):
    _, email = register_verified(service, notifier)

    with pytest.raises(InvalidCredentials) as unknown:
        service.login(unique_email(), PASSWORD)
    with pytest.raises(InvalidCredentials) as wrong:
        service.login(email, "Wrong123!")

    assert unknown.value.detail == wrong.value.detail
    assert unknown.value.status_code == wrong.value.status_code


def test_login_requires_verified_email(service):
    email = unique_email()
    service.register(email, PASSWORD)

    with pytest.raises(EmailNotVerified):
        service.login(email, PASSWORD)


def test_login_requires_active_status(service, repo, notifier):
    account_id, email = register_verified(service, notifier)
    repo.update_fields(account_id, status=AccountStatus.SUSPENDED)

    with pytest.raises(AccountNotActive):
        service.login(email, PASSWORD)


def test_login_rotates_previous_refresh_token(service, notifier):
    account_id, email = register_verified(service, notifier)
    first = service.login(email, PASSWORD)
    service.login(email, PASSWORD)

    with pytest.raises(InvalidRefreshToken):
        service.refresh(account_id, first.refresh_token)


# ---- 재발급 / 로그아웃 ----

def test_refresh_rotation(service, repo, signer, notifier):
    account_id, email = register_verified(service, notifier)
    token_a = service.login(email, PASSWORD).refresh_token

    pair = service.refresh(account_id, token_a)
    token_b = pair.refresh_token
    assert token_b != token_a
    assert repo.get_by_id(account_id).refresh_token_hash == signer.digest(token_b)

    with pytest.raises(InvalidRefreshToken):
        service.refresh(account_id, token_a)

    # 최신 토큰은 계속 사용 가능
    service.refresh(account_id, token_b)


def test_refresh_without_stored_token(service, notifier):
    account_id, _ = register_verified(service, notifier)
    with pytest.raises(InvalidRefreshToken):
        service.refresh(account_id, "whatever")


def test_refresh_unknown_or_malformed_account(service):
    with pytest.raises(InvalidRefreshToken):
        service.refresh("not-a-uuid", "whatever")
    with pytest.raises(InvalidRefreshToken):
        service.refresh("00000000-0000-0000-0000-000000000000", "whatever")


def test_refresh_rejected_for_suspended_account(service, repo, notifier):
    account_id, email = register_verified(service, notifier)
    token = service.login(email, PASSWORD).refresh_token
    repo.update_fields(account_id, status=AccountStatus.SUSPENDED)

    with pytest.raises(AccountNotActive):
        service.refresh(account_id, token)


def test_concurrent_refresh_with_same_token_only_one_wins(db, signer, notifier, clock):
    class RacingRepository(AccountRepository):
        """다이제스트 교체 직전에 다른 요청이 먼저 회전시킨 상황을 재현"""

        def swap_refresh_token_hash(self, account_id, expected, token_hash):
            super().swap_refresh_token_hash(account_id, expected, "f" * 64)
            return super().swap_refresh_token_hash(account_id, expected, token_hash)

    plain = AuthService(AccountRepository(db), CredentialHasher(rounds=4), signer, notifier, clock)
    account_id, email = register_verified(plain, notifier)
    token = plain.login(email, PASSWORD).refresh_token

    racing = AuthService(RacingRepository(db), CredentialHasher(rounds=4), signer, notifier, clock)
    with pytest.raises(InvalidRefreshToken):
        racing.refresh(account_id, token)


def test_logout_is_idempotent(service, repo, notifier):
    account_id, email = register_verified(service, notifier)
    token = service.login(email, PASSWORD).refresh_token

    service.logout(account_id)
    service.logout(account_id)

    assert repo.get_by_id(account_id).refresh_token_hash is None
    with pytest.raises(InvalidRefreshToken):
        service.refresh(account_id, token)


# ---- 비밀번호 찾기 / 재설정 ----

def test_forgot_password_does_not_reveal_existence(service, notifier):
    _, email = register_verified(service, notifier)

    known = service.forgot_password(email)
    unknown = service.forgot_password(unique_email())

    assert known == unknown
    assert known.message == FORGOT_MESSAGE
    assert len(notifier.of_kind(NotificationKind.PASSWORD_RESET)) == 1


def test_reset_password_flow(service, repo, notifier):
    account_id, email = register_verified(service, notifier)
    old_refresh = service.login(email, PASSWORD).refresh_token

    service.forgot_password(email)
    token = notifier.last_token(NotificationKind.PASSWORD_RESET)
    service.reset_password(token, "NewSecret456!")

    account = repo.get_by_id(account_id)
    assert account.password_reset_token is None
    assert account.password_reset_expires_at is None
    assert account.refresh_token_hash is None
    assert account.password_hash != "NewSecret456!"

    with pytest.raises(InvalidRefreshToken):
        service.refresh(account_id, old_refresh)
    with pytest.raises(InvalidCredentials):
        service.login(email, PASSWORD)
    service.login(email, "NewSecret456!")

    # 1회용
    with pytest.raises(InvalidToken):
        service.reset_password(token, "Another789!")


def test_new_reset_request_supersedes_previous(service, notifier):
    _, email = register_verified(service, notifier)
    service.forgot_password(email)
    first = notifier.last_token(NotificationKind.PASSWORD_RESET)
    service.forgot_password(email)

    with pytest.raises(InvalidToken):
        service.reset_password(first, "NewSecret456!")


def test_reset_password_expiry(service, notifier, clock):
    _, email = register_verified(service, notifier)
    service.forgot_password(email)
    token = notifier.last_token(NotificationKind.PASSWORD_RESET)

    clock.advance(hours=1)
    with pytest.raises(TokenExpired):
        service.reset_password(token, "NewSecret456!")


def test_reset_password_unknown_token(service):
    with pytest.raises(InvalidToken):
        service.reset_password("nope", "NewSecret456!")


# ---- Soft Delete ----

def test_soft_deleted_account_does_not_exist_for_lifecycle(service, repo, notifier):
    # 인증 대기 중인 계정 (인증 토큰 보유)
    pending_email = unique_email("pending")
    pending = service.register(pending_email, PASSWORD)
    verify_token = notifier.last_token(NotificationKind.VERIFY_EMAIL)

    # 로그인 + 재설정 요청까지 진행된 계정
    account_id, email = register_verified(service, notifier)
    refresh_token = service.login(email, PASSWORD).refresh_token
    service.forgot_password(email)
    reset_token = notifier.last_token(NotificationKind.PASSWORD_RESET)

    repo.soft_delete(pending.account_id, deleted_by="system")
    repo.soft_delete(account_id, deleted_by="system")
    sent_before = len(notifier.sent)

    with pytest.raises(InvalidCredentials):
        service.login(email, PASSWORD)
    with pytest.raises(InvalidRefreshToken):
        service.refresh(account_id, refresh_token)
    with pytest.raises(InvalidToken):
        service.verify_email(verify_token)
    with pytest.raises(InvalidToken):
        service.reset_password(reset_token, "NewSecret456!")
    with pytest.raises(NotFound):
        service.resend_verification(pending_email)

    assert service.forgot_password(email).message == FORGOT_MESSAGE
    assert len(notifier.sent) == sent_before

    # 같은 이메일로 새로 가입 가능
    service.register(email, PASSWORD)


def test_end_to_end_scenario(service, repo, notifier):
    result = service.register("a@x.com", "Secret123!")
    assert result.account_id

    service.verify_email(notifier.last_token(NotificationKind.VERIFY_EMAIL))
    account = repo.get_by_id(result.account_id)
    assert account.status == AccountStatus.ACTIVE and account.is_email_verified

    login = service.login("a@x.com", "Secret123!")
    assert login.access_token and login.refresh_token

    pair = service.refresh(result.account_id, login.refresh_token)
    with pytest.raises(InvalidRefreshToken):
        service.refresh(result.account_id, login.refresh_token)

    service.logout(result.account_id)
    with pytest.raises(InvalidRefreshToken):
        service.refresh(result.account_id, pair.refresh_token)


# ---- 메일 발송 실패 ----

def test_forgot_password_delivery_failure_is_surfaced(service, notifier):
    _, email = register_verified(service, notifier)

    notifier.fail = True
    with pytest.raises(DeliveryFailed):
        service.forgot_password(email)

    # 없는 이메일은 발송 자체가 없으므로 같은 메시지 그대로
    assert service.forgot_password(unique_email()).message == FORGOT_MESSAGE


def test_resend_verification_delivery_failure_is_surfaced(service, notifier):
    email = unique_email()
    service.register(email, PASSWORD)

    notifier.fail = True
    with pytest.raises(DeliveryFailed):
        service.resend_verification(email)


# ---- 로그인 응답 시간 ----

class CountingHasher(CredentialHasher):
    def __init__(self):
        super().__init__(rounds=4)
        self.verify_calls = 0

    def verify(self, plaintext, hashed):
        self.verify_calls += 1
        return super().verify(plaintext, hashed)


def test_login_unknown_email_still_runs_bcrypt(repo, signer, notifier, clock):
    hasher = CountingHasher()
    service = AuthService(repo, hasher, signer, notifier, clock)
    _, email = register_verified(service, notifier)

    with pytest.raises(InvalidCredentials):
        service.login(unique_email(), PASSWORD)
    assert hasher.verify_calls == 1

    with pytest.raises(InvalidCredentials):
        service.login(email, "Wrong123!")
    assert hasher.verify_calls == 2
