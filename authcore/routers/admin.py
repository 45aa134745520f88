import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status

from authcore.core.deps import authorize, get_account_service, get_current_account
from authcore.models.account import Account
from authcore.schemas.account import RoleUpdate, StatusUpdate
from authcore.services.accounts import AccountService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(authorize)])


def _reject_self(target_id: uuid.UUID, current_admin: Account, action: str) -> None:
    if target_id == current_admin.id:
        raise HTTPException(status_code=400, detail=f"Cannot {action} yourself")


# 전체 계정 목록 (탈퇴 계정 포함)
@router.get("/accounts")
def list_accounts(
    include_deleted: bool = True,
    service: AccountService = Depends(get_account_service),
):
    return {"data": service.list_accounts(include_deleted=include_deleted)}


# 계정 상태 변경 (정지 / 재활성화)
@router.patch("/accounts/{account_id}/status")
def set_status(
    account_id: uuid.UUID,
    data: StatusUpdate,
    current_admin: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    # 자기 자신 상태 변경 금지
    _reject_self(account_id, current_admin, "change status of")
    return {"data": service.set_status(account_id, data.status)}


# 계정 권한 변경
@router.patch("/accounts/{account_id}/role")
def set_role(
    account_id: uuid.UUID,
    data: RoleUpdate,
    current_admin: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    _reject_self(account_id, current_admin, "change role of")
    return {"data": service.set_role(account_id, data.role)}


# 관리자에 의한 탈퇴 처리 (Soft Delete)
@router.delete("/accounts/{account_id}")
def delete_account(
    account_id: uuid.UUID,
    current_admin: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    _reject_self(account_id, current_admin, "delete")
    service.delete_account(account_id, deleted_by=str(current_admin.id))
    return {"data": {"id": str(account_id), "status": "deleted"}}


# 레코드 물리 삭제 (탈퇴 계정 포함, 되돌릴 수 없음)
@router.delete("/accounts/{account_id}/hard")
def hard_delete_account(
    account_id: uuid.UUID,
    current_admin: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    _reject_self(account_id, current_admin, "delete")
    service.hard_delete(account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
