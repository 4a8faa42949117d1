"""SQLModel models package."""

from .comment import MAX_COMMENT_LENGTH, Comment, Reply
from .follow import Follow
from .like import CommentLike, PostLike, ReplyLike
from .one_time_token import OneTimeToken, TokenPurpose
from .post import Post
from .user import Gender, User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Gender",
    "Follow",
    "Post",
    "PostLike",
    "Comment",
    "CommentLike",
    "Reply",
    "ReplyLike",
    "MAX_COMMENT_LENGTH",
    "OneTimeToken",
    "TokenPurpose",
]
