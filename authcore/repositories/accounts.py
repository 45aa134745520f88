"""
repositories/accounts.py

계정(Account) 영속 계층(Repository).

accounts 테이블에 직접 쿼리를 수행하는 유일한 모듈이다.
라이프사이클 서비스는 이 클래스를 통해서만 계정을 조회/변경한다.

주요 기능:
- id / email / 이메일 인증 토큰 / 비밀번호 재설정 토큰 기준 조회
- 계정 생성 및 부분 업데이트
- 1회용 토큰 저장 / 소비, Refresh Token 다이제스트 교체
- Soft Delete / Hard Delete(관리자 전용) / 탈퇴 계정 포함 목록(관리자 전용)

설계 원칙:
- 탈퇴 계정(deleted=True)은 관리자 전용 메서드를 제외한 모든 조회/변경에서 제외
- 모든 변경은 단일 레코드에 대한 UPDATE 한 번 + 즉시 commit (원자적 적용)
- 경쟁 상태가 문제되는 변경(토큰 소비, Refresh 회전)은 WHERE 조건으로 이전 값을 확인

관련 파일:
- authcore.models.account     : Account 모델
- authcore.services.auth      : 인증 라이프사이클 서비스
- authcore.services.accounts  : 프로필 / 관리자 기능

"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from authcore.core.exceptions import DuplicateAccount
from authcore.models.account import Account, AccountStatus


class AccountRepository:
    def __init__(self, db: Session):
        self.db = db

    # ---- 조회 (탈퇴 계정 제외) ----

    def _active_query(self, *conditions):
        return select(Account).where(Account.deleted.is_(False), *conditions)

    def get_by_id(self, account_id: uuid.UUID) -> Account | None:
        return self.db.scalar(self._active_query(Account.id == account_id))

    def get_by_email(self, email: str) -> Account | None:
        return self.db.scalar(self._active_query(Account.email == email))

    def get_by_verification_token(self, token: str) -> Account | None:
        return self.db.scalar(self._active_query(Account.email_verification_token == token))

    def get_by_reset_token(self, token: str) -> Account | None:
        return self.db.scalar(self._active_query(Account.password_reset_token == token))

    # ---- 생성 / 변경 ----

    """
    계정 생성

    - 동시에 같은 이메일로 가입하는 경우 partial unique index에서 충돌
      -> IntegrityError를 DuplicateAccount로 변환

    """
    def create(self, **fields) -> Account:
        account = Account(**fields)
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateAccount()
        self.db.refresh(account)
        return account

    """
    단일 계정 UPDATE 공통 함수

    - id 일치 + 탈퇴하지 않은 계정만 대상
    - conditions 로 추가 WHERE 조건(이전 값 확인 등)을 지정
    - 실제로 변경된 행이 있으면 True

    """
    def _update(self, account_id: uuid.UUID, *conditions, **values) -> bool:
        result = self.db.execute(
            update(Account)
            .where(Account.id == account_id, Account.deleted.is_(False), *conditions)
            .values(**values)
        )
        self.db.commit()
        return result.rowcount == 1

    def update_fields(self, account_id: uuid.UUID, **fields) -> bool:
        return self._update(account_id, **fields)

    def set_verification_token(self, account_id: uuid.UUID, token: str, expires_at: datetime) -> bool:
        return self._update(
            account_id,
            email_verification_token=token,
            email_verification_expires_at=expires_at,
        )

    # 토큰이 아직 같은 값일 때만 소비 -> 같은 토큰으로 동시에 인증해도 한 번만 성공
    def mark_email_verified(self, account_id: uuid.UUID, token: str) -> bool:
        return self._update(
            account_id,
            Account.email_verification_token == token,
            is_email_verified=True,
            status=AccountStatus.ACTIVE,
            email_verification_token=None,
            email_verification_expires_at=None,
        )

    def set_reset_token(self, account_id: uuid.UUID, token: str, expires_at: datetime) -> bool:
        return self._update(
            account_id,
            password_reset_token=token,
            password_reset_expires_at=expires_at,
        )

    def clear_reset_token(self, account_id: uuid.UUID) -> bool:
        return self._update(
            account_id,
            password_reset_token=None,
            password_reset_expires_at=None,
        )

    """
    비밀번호 재설정 완료 처리

    - 새 비밀번호 해시 저장
    - 재설정 토큰 / 만료 시각 제거
    - Refresh Token 다이제스트 제거 (모든 기기 재로그인 필요)
    - 재설정 토큰이 아직 같은 값일 때만 적용

    """
    def reset_password(self, account_id: uuid.UUID, token: str, password_hash: str) -> bool:
        return self._update(
            account_id,
            Account.password_reset_token == token,
            password_hash=password_hash,
            password_reset_token=None,
            password_reset_expires_at=None,
            refresh_token_hash=None,
        )

    def set_refresh_token_hash(self, account_id: uuid.UUID, token_hash: str | None) -> bool:
        return self._update(account_id, refresh_token_hash=token_hash)

    # 저장된 다이제스트가 expected 일 때만 교체 (Refresh 회전 경쟁 방지)
    def swap_refresh_token_hash(self, account_id: uuid.UUID, expected: str, token_hash: str) -> bool:
        return self._update(
            account_id,
            Account.refresh_token_hash == expected,
            refresh_token_hash=token_hash,
        )

    def update_last_login(self, account_id: uuid.UUID, at: datetime) -> bool:
        return self._update(account_id, last_login_at=at)

    # ---- 삭제 ----

    def soft_delete(self, account_id: uuid.UUID, deleted_by: str) -> bool:
        return self._update(
            account_id,
            deleted=True,
            deleted_at=datetime.now(timezone.utc),
            deleted_by=deleted_by,
            refresh_token_hash=None,
        )

    # ---- 관리자 전용 (탈퇴 계정 포함) ----

    def get_any_by_id(self, account_id: uuid.UUID) -> Account | None:
        return self.db.scalar(select(Account).where(Account.id == account_id))

    def hard_delete(self, account_id: uuid.UUID) -> bool:
        result = self.db.execute(delete(Account).where(Account.id == account_id))
        self.db.commit()
        return result.rowcount == 1

    def list_all(self, include_deleted: bool = True) -> list[Account]:
        query = select(Account).order_by(Account.created_at, Account.email)
        if not include_deleted:
            query = query.where(Account.deleted.is_(False))
        return list(self.db.scalars(query).all())
