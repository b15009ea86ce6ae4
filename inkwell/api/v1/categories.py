"""Category endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from inkwell.api.deps import DbSession, require_roles
from inkwell.core.roles import STAFF_ROLES
from inkwell.schemas.auth import CurrentUser
from inkwell.schemas.common import ApiResponse
from inkwell.schemas.topic import CategoryCreate, CategoryOut
from inkwell.services import topics as topic_service

router = APIRouter()


@router.get("", response_model=ApiResponse[list[CategoryOut]])
def list_categories(db: DbSession) -> ApiResponse[list[CategoryOut]]:
    categories = topic_service.list_categories(db)
    return ApiResponse(data=[CategoryOut.model_validate(c) for c in categories])


@router.post("", response_model=ApiResponse[CategoryOut], status_code=status.HTTP_201_CREATED)
def create_category(
    body: CategoryCreate,
    _staff: Annotated[CurrentUser, Depends(require_roles(*STAFF_ROLES))],
    db: DbSession,
) -> ApiResponse[CategoryOut]:
    category = topic_service.create_category(db, body)
    return ApiResponse(message="Category created successfully", data=CategoryOut.model_validate(category))
