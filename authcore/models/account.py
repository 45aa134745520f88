"""
account.py

계정(Account) 및 권한(Role) / 상태(Status) 모델 정의 파일.

이 파일은 사용자 계정의 인증 정보와
이메일 인증, 비밀번호 재설정, Refresh Token 회전(rotation),
탈퇴 상태(Soft Delete) 정보를 관리한다.

모든 인증 라이프사이클 기능의 기준이 되는 유일한 영속 모델이다.

설계 원칙:
- 비밀번호는 해시 값만 저장 (해싱은 서비스 계층에서 명시적으로 수행, 모델 훅 없음)
- 1회용 토큰(인증/재설정)은 진행 중일 때만 값이 존재하고 사용 즉시 비움
- Refresh Token은 원문이 아닌 다이제스트만 저장, 계정당 1개만 유효
- 탈퇴 계정(deleted=True)은 모든 조회에서 제외
- 활성 계정 기준으로만 이메일 unique (partial unique index)

"""

import uuid
import datetime
from enum import Enum

from sqlalchemy import String, Boolean, DateTime, Index, Uuid, Enum as SAEnum, func, text
from sqlalchemy.orm import Mapped, mapped_column

from authcore.db.base import Base


"""
계정 권한(Role) 정의

- USER       : 일반 사용자
- ADMIN      : 관리자
- MODERATOR  : 운영자

토큰 payload에 그대로 실려 전달되는 정보성 라벨이다.

"""

class AccountRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"


"""
계정 상태(Status) 정의

- INACTIVE   : 가입 직후, 이메일 인증 전
- ACTIVE     : 이메일 인증 완료, 로그인 가능
- SUSPENDED  : 관리자에 의해 정지됨

status가 계정의 이용 가능 여부를 결정하는 기준 값이고,
is_email_verified는 이메일 소유 확인 여부만을 기록한다.

"""

class AccountStatus(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    SUSPENDED = "suspended"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        Index(
            "uq_accounts_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted = false"),
            sqlite_where=text("deleted = 0"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(50), nullable=True)

    role: Mapped[AccountRole] = mapped_column(
        SAEnum(AccountRole, name="account_role", values_callable=_enum_values),
        nullable=False,
        default=AccountRole.USER,
    )
    status: Mapped[AccountStatus] = mapped_column(
        SAEnum(AccountStatus, name="account_status", values_callable=_enum_values),
        nullable=False,
        default=AccountStatus.INACTIVE,
    )
    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    email_verification_token: Mapped[str | None] = mapped_column(String(128), index=True, nullable=True)
    email_verification_expires_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    password_reset_token: Mapped[str | None] = mapped_column(String(128), index=True, nullable=True)
    password_reset_expires_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    refresh_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    last_login_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    deleted_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
