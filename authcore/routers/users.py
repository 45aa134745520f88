"""
users.py

로그인한 계정 본인의 프로필 API 모음.

관리자용 계정 관리 기능(admin.py)과 분리하여,
권한 범위와 노출 가능한 데이터 범위를 명확히 하기 위한 구조이다.

주요 기능:
- 본인 프로필 조회 (민감 정보 제외)
- 본인 프로필 수정 (이름)
- 본인 탈퇴 (Soft Delete)

설계 원칙:
- 로그인한 계정만 접근 가능 (authcore.core.routes)
- password_hash / refresh_token_hash / 1회용 토큰은 응답에 포함하지 않음
- 탈퇴 시 Refresh Token도 무효화되고 이후 모든 인증 흐름에서 제외

관련 파일:
- authcore.services.accounts  : 프로필 / 탈퇴 처리
- authcore.core.deps          : 접근 정책 검사 / 현재 계정
"""

from fastapi import APIRouter, Depends, Response

from authcore.core.config import settings
from authcore.core.deps import authorize, get_account_service, get_current_account
from authcore.models.account import Account
from authcore.routers.auth import REFRESH_COOKIE_NAME
from authcore.schemas.account import ProfileUpdate
from authcore.services.accounts import AccountService

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(authorize)])


@router.get("/me")
def profile(
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    return {"data": service.get_profile(account.id)}


@router.put("/me")
def update_profile(
    data: ProfileUpdate,
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    return {"data": service.update_profile(account.id, first_name=data.first_name, last_name=data.last_name)}


"""
본인 탈퇴 API

- Soft Delete 방식으로 처리 (deleted=True, deleted_by=본인 id)
- 탈퇴 시 Refresh Token 무효화 + 쿠키 삭제

"""
@router.delete("/me")
def delete_me(
    response: Response,
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    service.delete_account(account.id, deleted_by=str(account.id))

    response.delete_cookie(key=REFRESH_COOKIE_NAME, path="/", domain=settings.COOKIE_DOMAIN)
    return {
        "data": {
            "message": "Account deleted successfully",
            "deleted": True,
        }
    }
