"""Version 1 HTTP routers."""

from fastapi import APIRouter

from . import auth, comments, posts, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
api_router.include_router(comments.router)

__all__ = ["api_router"]
