"""Role catalogue endpoint."""

from fastapi import APIRouter

from inventory_auth.models.user import UserRole
from inventory_auth.schemas.user import RoleListResponse, RoleRead
from inventory_auth.security.permissions import AdminIdentityDep

router = APIRouter()


@router.get("", response_model=RoleListResponse, summary="List roles")
async def list_roles(admin: AdminIdentityDep) -> RoleListResponse:
    roles = sorted(UserRole, key=lambda role: role.id)
    return RoleListResponse(roles=[RoleRead.from_role(role) for role in roles])
