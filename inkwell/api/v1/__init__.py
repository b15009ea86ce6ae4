"""API v1 routes."""

from fastapi import APIRouter

from inkwell.api.v1 import auth, categories, health, me, posts, topics, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/user", tags=["users"])
router.include_router(posts.router, prefix="/posts", tags=["posts"])
router.include_router(topics.router, prefix="/topics", tags=["topics"])
router.include_router(categories.router, prefix="/categories", tags=["categories"])
router.include_router(me.router, prefix="/me", tags=["me"])
