# tests/helpers.py
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from authcore.core.exceptions import DeliveryFailed
from authcore.core.security import hasher
from authcore.models.account import Account, AccountRole, AccountStatus
from authcore.services.notifier import NotificationKind


@dataclass
class SentMessage:
    address: str
    kind: NotificationKind
    context: dict


class FakeNotifier:
    """발송된 메일을 메모리에 쌓아두는 Notifier. fail=True 이면 DeliveryFailed."""

    def __init__(self):
        self.sent: list[SentMessage] = []
        self.fail = False

    def notify(self, address, kind, context):
        if self.fail:
            raise DeliveryFailed()
        self.sent.append(SentMessage(address, kind, dict(context)))

    def of_kind(self, kind: NotificationKind) -> list[SentMessage]:
        return [m for m in self.sent if m.kind == kind]

    def last_token(self, kind: NotificationKind) -> str:
        return self.of_kind(kind)[-1].context["token"]


class FrozenClock:
    def __init__(self, now: datetime | None = None):
        self.now = now or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:6]}@test.com"


def create_account_in_db(
    db: Session,
    *,
    email: str,
    password: str,
    role: AccountRole = AccountRole.USER,
    status: AccountStatus = AccountStatus.ACTIVE,
    verified: bool = True,
) -> Account:
    account = Account(
        email=email,
        password_hash=hasher.hash(password),
        first_name="TEST",
        role=role,
        status=status,
        is_email_verified=verified,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def register_and_verify(client, notifier: FakeNotifier, *, email: str, password: str) -> str:
    """가입 → 메일로 받은 토큰으로 인증까지 완료하고 계정 id 반환"""
    reg = client.post("/auth/register", json={"email": email, "password": password, "first_name": "테스트"})
    assert reg.status_code == 201, reg.text

    token = notifier.last_token(NotificationKind.VERIFY_EMAIL)
    verify = client.get(f"/auth/verify-email/{token}")
    assert verify.status_code == 200, verify.text
    return reg.json()["data"]["id"]


def login(client, *, email: str, password: str) -> dict:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["data"]


def get_account(db: Session, account_id: str) -> Account:
    db.expire_all()
    return db.scalar(select(Account).where(Account.id == uuid.UUID(account_id)))
