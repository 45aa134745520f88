from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from authcore.models.account import AccountRole, AccountStatus


# 🔹 외부로 노출 가능한 계정 정보
#    password_hash / refresh_token_hash / 1회용 토큰은 포함하지 않음
class AccountPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)  # SQLAlchemy → Pydantic 변환

    id: UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: AccountRole
    status: AccountStatus
    is_email_verified: bool
    last_login_at: datetime | None = None
    created_at: datetime | None = None


# 🔹 관리자 목록 조회용 (탈퇴 정보 포함)
class AccountAdminView(AccountPublic):
    deleted: bool
    deleted_at: datetime | None = None
    deleted_by: str | None = None


# 🔹 본인 프로필 수정 요청
class ProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)


# 🔹 관리자 상태 변경 요청
class StatusUpdate(BaseModel):
    status: AccountStatus


# 🔹 관리자 role 변경 요청
class RoleUpdate(BaseModel):
    role: AccountRole
