"""Topic tree endpoints; mutations require MODERATOR or above."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from inkwell.api.deps import DbSession, require_roles
from inkwell.core.roles import STAFF_ROLES
from inkwell.schemas.auth import CurrentUser
from inkwell.schemas.common import ApiResponse
from inkwell.schemas.topic import (
    TopicCreate,
    TopicDetail,
    TopicNode,
    TopicOut,
    TopicUpdate,
    TopicWithParent,
)
from inkwell.services import topics as topic_service

router = APIRouter()

StaffUser = Annotated[CurrentUser, Depends(require_roles(*STAFF_ROLES))]


@router.get("", response_model=ApiResponse[list[TopicWithParent]])
def list_topics(db: DbSession) -> ApiResponse[list[TopicWithParent]]:
    topics = topic_service.list_topics(db)
    return ApiResponse(data=[TopicWithParent.model_validate(t) for t in topics])


@router.get("/tree", response_model=ApiResponse[list[TopicNode]])
def topic_tree(db: DbSession) -> ApiResponse[list[TopicNode]]:
    """All topics nested under their parents, to any depth."""
    return ApiResponse(data=topic_service.topic_tree(db))


@router.get("/{slug}", response_model=ApiResponse[TopicDetail])
def get_topic(slug: str, db: DbSession) -> ApiResponse[TopicDetail]:
    topic = topic_service.get_topic_by_slug(db, slug)
    return ApiResponse(data=TopicDetail.model_validate(topic))


@router.post("", response_model=ApiResponse[TopicOut], status_code=status.HTTP_201_CREATED)
def create_topic(body: TopicCreate, _staff: StaffUser, db: DbSession) -> ApiResponse[TopicOut]:
    topic = topic_service.create_topic(db, body)
    return ApiResponse(message="Topic created successfully", data=TopicOut.model_validate(topic))


@router.put("/{topic_id}", response_model=ApiResponse[TopicOut])
def update_topic(
    topic_id: int,
    body: TopicUpdate,
    _staff: StaffUser,
    db: DbSession,
) -> ApiResponse[TopicOut]:
    topic = topic_service.update_topic(db, topic_id, body)
    return ApiResponse(message="Topic updated successfully", data=TopicOut.model_validate(topic))


@router.delete("/{topic_id}", response_model=ApiResponse[None])
def delete_topic(topic_id: int, _staff: StaffUser, db: DbSession) -> ApiResponse[None]:
    """Delete a topic with no subtopics and no posts."""
    topic_service.delete_topic(db, topic_id)
    return ApiResponse(message="Topic deleted successfully")
