from functools import lru_cache
from typing import Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from authcore.core.config import settings
from authcore.core.exceptions import TokenError
from authcore.core.routes import policy_for
from authcore.core.security import TokenDomain, TokenPayload, hasher, signer
from authcore.db.session import SessionLocal
from authcore.models.account import Account
from authcore.repositories.accounts import AccountRepository
from authcore.services.accounts import AccountService
from authcore.services.auth import AuthService, parse_account_id
from authcore.services.notifier import Notifier, build_notifier

# Swagger Authorize에서 "Bearer 토큰" 입력받는 스키마
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def get_notifier() -> Notifier:
    return build_notifier(settings)


# 서비스 조립: 저장소 / 해시 / 토큰 / 메일 발송 객체를 생성자로 직접 주입
def get_auth_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(
        accounts=AccountRepository(db),
        hasher=hasher,
        signer=signer,
        notifier=notifier,
    )


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    return AccountService(AccountRepository(db))


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


"""
경로 접근 정책 검사 (라우터 공통 의존성)

- authcore.core.routes 의 테이블에서 현재 경로의 정책 조회
- 로그인 필요 경로: access 토큰 검증 후 계정 조회 (탈퇴 계정은 조회되지 않음)
- 허용 권한이 지정된 경로: 계정 role 확인
- 통과한 계정 / 토큰 payload는 request.state 에 저장

"""

def authorize(
    request: Request,
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> None:
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)
    policy = policy_for(request.method, path)
    if not policy.requires_auth:
        return

    if cred is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = signer.verify(cred.credentials, TokenDomain.ACCESS)
    except TokenError:
        raise _unauthorized("Could not validate credentials")

    account_id = parse_account_id(payload.account_id)
    account = AccountRepository(db).get_by_id(account_id) if account_id else None
    if not account:
        raise _unauthorized("User not found")

    if policy.allowed_roles and account.role not in policy.allowed_roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient role",
        )

    request.state.account = account
    request.state.token_payload = payload


def get_current_account(request: Request) -> Account:
    account = getattr(request.state, "account", None)
    if account is None:
        raise _unauthorized("Not authenticated")
    return account


def get_token_payload(request: Request) -> TokenPayload:
    payload = getattr(request.state, "token_payload", None)
    if payload is None:
        raise _unauthorized("Not authenticated")
    return payload
