"""
services/protocols.py

라이프사이클 서비스가 의존하는 협력 객체의 인터페이스 정의.

AuthService는 생성자에서 아래 인터페이스를 구현한 객체를 명시적으로 주입받는다.
(기본 구현: AccountRepository / CredentialHasher / TokenSigner / Notifier)

"""

import uuid
from datetime import datetime
from typing import Protocol

from authcore.core.security import TokenDomain, TokenPair, TokenPayload
from authcore.models.account import Account


class AccountStore(Protocol):
    def get_by_id(self, account_id: uuid.UUID) -> Account | None: ...
    def get_by_email(self, email: str) -> Account | None: ...
    def get_by_verification_token(self, token: str) -> Account | None: ...
    def get_by_reset_token(self, token: str) -> Account | None: ...
    def create(self, **fields) -> Account: ...
    def update_fields(self, account_id: uuid.UUID, **fields) -> bool: ...
    def set_verification_token(self, account_id: uuid.UUID, token: str, expires_at: datetime) -> bool: ...
    def mark_email_verified(self, account_id: uuid.UUID, token: str) -> bool: ...
    def set_reset_token(self, account_id: uuid.UUID, token: str, expires_at: datetime) -> bool: ...
    def reset_password(self, account_id: uuid.UUID, token: str, password_hash: str) -> bool: ...
    def set_refresh_token_hash(self, account_id: uuid.UUID, token_hash: str | None) -> bool: ...
    def swap_refresh_token_hash(self, account_id: uuid.UUID, expected: str, token_hash: str) -> bool: ...


class PasswordHasher(Protocol):
    def hash(self, plaintext: str) -> str: ...
    def verify(self, plaintext: str, hashed: str | None) -> bool: ...
    def dummy_verify(self, plaintext: str) -> bool: ...


class TokenIssuer(Protocol):
    def sign(self, payload: TokenPayload, domain: TokenDomain, ttl=None) -> str: ...
    def verify(self, token: str, domain: TokenDomain) -> TokenPayload: ...
    def create_pair(self, payload: TokenPayload) -> TokenPair: ...
    def create_opaque_token(self) -> str: ...
    def verification_expiry(self, now: datetime) -> datetime: ...
    def reset_expiry(self, now: datetime) -> datetime: ...
    def digest(self, token: str) -> str: ...
    def matches_digest(self, token: str, digest: str | None) -> bool: ...
