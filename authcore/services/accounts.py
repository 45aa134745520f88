"""
services/accounts.py

계정 프로필 / 관리자용 계정 관리 비즈니스 로직 모음.

인증 라이프사이클(auth.py) 밖에서 계정을 다루는 기능을 담당한다.
라우터에서는 이 클래스의 메서드를 호출하여 조회/변경/삭제를 수행한다.

주요 기능:
- 본인 프로필 조회 / 수정 / 탈퇴(Soft Delete)
- 관리자: 전체 계정 목록(탈퇴 포함), 상태 변경, 권한 변경, Soft / Hard Delete

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 정지(SUSPENDED) 또는 탈퇴 처리 시 Refresh Token도 함께 무효화
- Hard Delete는 관리자 경로에서만 사용

관련 파일:
- authcore.repositories.accounts  : 계정 저장소
- authcore.routers.users          : 본인 프로필 API
- authcore.routers.admin          : 관리자 API

"""

import logging
import uuid

from authcore.core.exceptions import NotFound
from authcore.models.account import AccountRole, AccountStatus
from authcore.repositories.accounts import AccountRepository
from authcore.schemas.account import AccountAdminView, AccountPublic

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, accounts: AccountRepository):
        self._accounts = accounts

    def get_profile(self, account_id: uuid.UUID) -> AccountPublic:
        account = self._accounts.get_by_id(account_id)
        if not account:
            raise NotFound()
        return AccountPublic.model_validate(account)

    # None 인 항목은 기존 값 유지
    def update_profile(self, account_id: uuid.UUID, first_name: str | None = None,
                       last_name: str | None = None) -> AccountPublic:
        changes = {}
        if first_name is not None:
            changes["first_name"] = first_name
        if last_name is not None:
            changes["last_name"] = last_name

        if changes and not self._accounts.update_fields(account_id, **changes):
            raise NotFound()
        return self.get_profile(account_id)

    def delete_account(self, account_id: uuid.UUID, deleted_by: str) -> None:
        if not self._accounts.soft_delete(account_id, deleted_by=deleted_by):
            raise NotFound()
        logger.info("Account soft-deleted: %s (by %s)", account_id, deleted_by)

    # ---- 관리자 전용 ----

    def list_accounts(self, include_deleted: bool = True) -> list[AccountAdminView]:
        return [AccountAdminView.model_validate(a) for a in self._accounts.list_all(include_deleted)]

    """
    계정 상태 변경

    - SUSPENDED 로 변경하면 Refresh Token 다이제스트도 제거 (즉시 재발급 차단)
    - ACTIVE 로 되돌려도 이메일 인증 여부(is_email_verified)는 변경하지 않음

    """
    def set_status(self, account_id: uuid.UUID, status: AccountStatus) -> AccountPublic:
        changes = {"status": status}
        if status != AccountStatus.ACTIVE:
            changes["refresh_token_hash"] = None

        if not self._accounts.update_fields(account_id, **changes):
            raise NotFound()
        logger.info("Account status changed: %s -> %s", account_id, status.value)
        return self.get_profile(account_id)

    def set_role(self, account_id: uuid.UUID, role: AccountRole) -> AccountPublic:
        if not self._accounts.update_fields(account_id, role=role):
            raise NotFound()
        logger.info("Account role changed: %s -> %s", account_id, role.value)
        return self.get_profile(account_id)

    def hard_delete(self, account_id: uuid.UUID) -> None:
        if not self._accounts.hard_delete(account_id):
            raise NotFound()
        logger.warning("Account hard-deleted: %s", account_id)
