"""
security.py

비밀번호 해싱 및 토큰 생성/검증을 담당하는 보안 유틸리티 모음.

이 파일은 인증(auth) 라이프사이클 서비스에서 사용하는
저수준(low-level) 보안 기능만을 제공하며,
라우터나 비즈니스 로직은 포함하지 않는다.

주요 기능:
- 비밀번호 해싱 및 검증 (bcrypt, CredentialHasher)
- JWT Access / Refresh Token 생성 및 검증 (TokenSigner)
- 이메일 인증 / 비밀번호 재설정용 1회용(opaque) 토큰 생성
- Refresh Token 저장용 다이제스트(SHA-256) 계산 및 비교

설계 원칙:
- Access Token과 Refresh Token은 서로 다른 시크릿으로 서명
  (한쪽 시크릿이 유출되어도 다른 쪽 토큰은 위조 불가)
- 1회용 토큰은 서명하지 않음 -> 유효성은 DB에 저장된 값/만료 시각으로만 판단
- 시간 기반(exp) 만료는 UTC 기준으로 처리
- 평문 비밀번호/토큰은 로그로 남기지 않음

관련 파일:
- authcore.core.config        : JWT 시크릿 키 및 만료 설정
- authcore.core.deps          : Access Token 검증 의존성
- authcore.services.auth      : 로그인 / 재발급 / 비밀번호 재설정

"""

import hashlib
import hmac
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from authcore.core.config import Settings, settings as default_settings
from authcore.core.exceptions import ExpiredToken, InvalidSignature


class TokenDomain(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPayload:
    account_id: str
    email: str
    role: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


"""
비밀번호 해시 / 검증

- bcrypt 기반 CryptContext 사용
- deprecated="auto"로 향후 알고리즘 교체 가능하도록 설정
- rounds(work factor)는 설정값(BCRYPT_ROUNDS)을 따름

"""

class CredentialHasher:
    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        self._dummy_hash: str | None = None

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    # 손상되었거나 알 수 없는 형식의 해시는 예외 대신 False
    def verify(self, plaintext: str, hashed: str | None) -> bool:
        if not hashed:
            return False
        try:
            return self._context.verify(plaintext, hashed)
        except (ValueError, TypeError):
            return False

    # 존재하지 않는 계정 로그인도 실제 계정과 같은 bcrypt 비용을 치르도록 고정 해시로 검증
    def dummy_verify(self, plaintext: str) -> bool:
        if self._dummy_hash is None:
            self._dummy_hash = self._context.hash("dummy-password-for-timing")
        self.verify(plaintext, self._dummy_hash)
        return False


"""
토큰 발급 / 검증

- access  : API 요청 인증용, 짧은 만료 (기본 15분)
- refresh : 토큰 재발급용, 긴 만료 (기본 7일)
- payload : sub(account_id), email, role, type, iat, exp, jti
- jti를 포함하여 같은 초에 발급된 토큰도 서로 다른 문자열이 되도록 함

"""

class TokenSigner:
    def __init__(self, config: Settings):
        self._config = config
        self._secrets = {
            TokenDomain.ACCESS: config.SECRET_KEY,
            TokenDomain.REFRESH: config.REFRESH_SECRET_KEY,
        }
        self._default_ttl = {
            TokenDomain.ACCESS: timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES),
            TokenDomain.REFRESH: timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS),
        }

    def sign(self, payload: TokenPayload, domain: TokenDomain, ttl: Optional[timedelta] = None) -> str:
        issued = datetime.now(timezone.utc)
        expire = issued + (ttl if ttl is not None else self._default_ttl[domain])
        claims = {
            "sub": payload.account_id,
            "email": payload.email,
            "role": payload.role,
            "type": domain.value,
            "iat": int(issued.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self._secrets[domain], algorithm=self._config.ALGORITHM)

    def verify(self, token: str, domain: TokenDomain) -> TokenPayload:
        try:
            claims = jwt.decode(token, self._secrets[domain], algorithms=[self._config.ALGORITHM])
        except ExpiredSignatureError as e:
            raise ExpiredToken("Token has expired") from e
        except JWTError as e:
            raise InvalidSignature("Could not validate token") from e

        # 다른 도메인의 토큰 차단 (access 자리에 refresh 등)
        if claims.get("type") != domain.value:
            raise InvalidSignature(f"Not an {domain.value} token")

        try:
            return TokenPayload(
                account_id=claims["sub"],
                email=claims["email"],
                role=claims["role"],
            )
        except KeyError as e:
            raise InvalidSignature(f"Missing claim: {e.args[0]}") from e

    def create_pair(self, payload: TokenPayload) -> TokenPair:
        return TokenPair(
            access_token=self.sign(payload, TokenDomain.ACCESS),
            refresh_token=self.sign(payload, TokenDomain.REFRESH),
        )

    # 1회용 토큰: 서명 없는 랜덤 문자열
    @staticmethod
    def create_opaque_token() -> str:
        return secrets.token_urlsafe(32)

    def verification_expiry(self, now: datetime) -> datetime:
        return now + timedelta(hours=self._config.EMAIL_VERIFICATION_EXPIRE_HOURS)

    def reset_expiry(self, now: datetime) -> datetime:
        return now + timedelta(hours=self._config.PASSWORD_RESET_EXPIRE_HOURS)

    # Refresh Token은 원문 대신 다이제스트만 DB에 저장
    @staticmethod
    def digest(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    @classmethod
    def matches_digest(cls, token: str, digest: str | None) -> bool:
        if not digest:
            return False
        return hmac.compare_digest(cls.digest(token), digest)


# 애플리케이션 전역에서 사용하는 기본 인스턴스
hasher = CredentialHasher(rounds=default_settings.BCRYPT_ROUNDS)
signer = TokenSigner(default_settings)
