"""
auth.py

인증(Authentication) API 모음.

이 파일은 회원 가입, 이메일 인증, 로그인, 토큰 재발급, 로그아웃,
비밀번호 찾기/재설정과 같이 인증 라이프사이클 전반의 HTTP 진입점을 담당한다.
실제 상태 전이는 AuthService 에서 수행하고, 이 파일은 요청/응답 변환만 한다.

주요 기능:
- 회원 가입 / 인증 메일 재발송
- 이메일 인증 (메일 링크)
- 로그인 및 토큰 발급
- Refresh Token 기반 토큰 재발급 (회전)
- 로그아웃 (Refresh Token 무효화)
- 비밀번호 찾기 / 재설정
- 현재 토큰 정보 조회

설계 원칙:
- Access Token은 응답 바디 + Authorization Header(Bearer)로 사용
- Refresh Token은 응답 바디와 HttpOnly Cookie 양쪽으로 전달, 재발급 시 둘 중 하나로 받음
- 경로별 로그인 필요 여부는 authcore.core.routes 테이블에서 관리
- 서비스 예외(AuthError)는 authcore.main 의 예외 핸들러가 HTTP 응답으로 변환

관련 파일:
- authcore.services.auth      : 인증 라이프사이클 서비스
- authcore.core.security      : Refresh Token 서명 검증
- authcore.core.deps          : 서비스 조립 / 접근 정책 검사
- authcore.schemas.auth       : 인증 관련 요청/응답

"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from authcore.core.config import settings
from authcore.core.deps import authorize, get_auth_service, get_current_account, get_token_payload
from authcore.core.exceptions import TokenError
from authcore.core.security import TokenDomain, TokenPayload, signer
from authcore.models.account import Account
from authcore.schemas.auth import (
    RegisterRequest, RegisterResponse,
    LoginRequest, RefreshRequest, TokenResponse,
    EmailRequest, ResetPasswordRequest, MessageResponse,
)
from authcore.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"], dependencies=[Depends(authorize)])

REFRESH_COOKIE_NAME = "refresh_token"


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,        # 로컬 False / HTTPS 운영 True
        samesite=settings.COOKIE_SAMESITE,    # "lax" 추천
        domain=settings.COOKIE_DOMAIN,        # 보통 None
        path="/",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(key=REFRESH_COOKIE_NAME, path="/", domain=settings.COOKIE_DOMAIN)


"""
회원 가입 API

- 이메일 기준으로 신규 계정 생성 (INACTIVE, 이메일 미인증)
- 인증 메일 발송까지 완료되어야 성공
- 응답에는 계정 id와 안내 메시지만 포함 (인증 토큰은 메일로만 전달)

"""

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    result = service.register(
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
    )
    return {"data": RegisterResponse(id=result.account_id, message=result.message)}


"""
로그인 API

- 이메일 / 비밀번호 인증
- 이메일 미인증 / 비활성 계정은 로그인 불가
- Access / Refresh Token은 응답 바디로 반환, Refresh Token은 HttpOnly Cookie로도 설정

"""

@router.post("/login")
def login(data: LoginRequest, response: Response, service: AuthService = Depends(get_auth_service)):
    result = service.login(data.email, data.password)
    _set_refresh_cookie(response, result.refresh_token)

    return {
        "data": {
            "access_token": result.access_token,
            "refresh_token": result.refresh_token,
            "token_type": result.token_type,
            "user": result.account,
        }
    }


"""
토큰 재발급 API

- 바디의 refresh_token, 없으면 쿠키의 Refresh Token 사용
- Refresh 시크릿으로 서명 검증 후 계정 id 추출
- 저장된 다이제스트와 일치해야 재발급, 재발급 시 Refresh Token 회전

"""

@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    data: RefreshRequest | None = None,
    service: AuthService = Depends(get_auth_service),
):
    token = (data.refresh_token if data else None) or request.cookies.get(REFRESH_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing refresh token")

    try:
        payload = signer.verify(token, TokenDomain.REFRESH)
    except TokenError:
        # 서명이 깨진 쿠키는 같이 제거
        error = JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": "Invalid refresh token"})
        _clear_refresh_cookie(error)
        return error

    tokens = service.refresh(payload.account_id, token)
    _set_refresh_cookie(response, tokens.refresh_token)

    return {"data": TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)}


"""
로그아웃 API

- 저장된 Refresh 다이제스트 제거로 기존 Refresh Token 무효화
- 클라이언트의 Refresh Token 쿠키 삭제

"""

@router.post("/logout")
def logout(
    account: Account = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    service.logout(account.id)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    _clear_refresh_cookie(response)
    return response


# 인증 메일 링크 진입점
@router.get("/verify-email/{token}")
def verify_email(token: str, service: AuthService = Depends(get_auth_service)):
    result = service.verify_email(token)
    return {"data": MessageResponse(message=result.message)}


@router.post("/resend-verification")
def resend_verification(data: EmailRequest, service: AuthService = Depends(get_auth_service)):
    result = service.resend_verification(data.email)
    return {"data": MessageResponse(message=result.message)}


# 계정 존재 여부와 관계없이 같은 응답
@router.post("/forgot-password")
def forgot_password(data: EmailRequest, service: AuthService = Depends(get_auth_service)):
    result = service.forgot_password(data.email)
    return {"data": MessageResponse(message=result.message)}


@router.post("/reset-password")
def reset_password(data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    result = service.reset_password(data.token, data.new_password)
    return {"data": MessageResponse(message=result.message)}


@router.get("/me")
def me(payload: TokenPayload = Depends(get_token_payload)):
    return {
        "data": {
            "id": payload.account_id,
            "email": payload.email,
            "role": payload.role,
        }
    }
