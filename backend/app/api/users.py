"""User administration endpoints for tenant admins and super-admins."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_tenant_context
from backend.app.schemas.user import (
    ActionResult,
    LinkToTenantRequest,
    LinkToTenantResponse,
    UpdateProfileRequest,
    UserCreateRequest,
    UserCreateResponse,
    UserDeleteRequest,
    UserRead,
)
from backend.app.services import users as user_service
from backend.app.services.tenancy import TenantContext

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/create", response_model=UserCreateResponse)
async def create_user(
    payload: UserCreateRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
):
    user = user_service.create_user(db, ctx, payload)
    return {"success": True, "user": UserRead.model_validate(user)}


@router.post("/delete", response_model=ActionResult)
async def delete_user(
    payload: UserDeleteRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
):
    user_service.delete_user(db, ctx, payload.user_id)
    return {"success": True, "message": "User deleted successfully"}


@router.post("/link-to-tenant", response_model=LinkToTenantResponse)
async def link_to_tenant(
    payload: LinkToTenantRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
):
    action = user_service.link_user_to_tenant(db, ctx, payload)
    message = "User linked to tenant" if action == "created" else "User role updated for tenant"
    return {"success": True, "message": message, "action": action}


@router.post("/update-profile", response_model=ActionResult)
async def update_profile(
    payload: UpdateProfileRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
):
    user_service.update_profile(db, ctx, payload)
    return {"success": True, "message": "Profile updated successfully"}
