from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]
ShortStr = Annotated[str, StringConstraints(min_length=1, max_length=256)]


class CreateBody(BaseModel):
    # Unknown keys (including id/createdAt) are rejected on create
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class UpdateBody(BaseModel):
    # Immutable keys sent on update are dropped, not applied
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Row(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CreateUserRequest(CreateBody):
    email: ShortStr
    name: ShortStr


class UpdateUserRequest(UpdateBody):
    email: Optional[ShortStr] = None
    name: Optional[ShortStr] = None


class CreatePostRequest(CreateBody):
    user_id: NonEmptyStr
    title: ShortStr
    content: NonEmptyStr


class UpdatePostRequest(UpdateBody):
    title: Optional[ShortStr] = None
    content: Optional[NonEmptyStr] = None


class CreateCommentRequest(CreateBody):
    user_id: NonEmptyStr
    post_id: NonEmptyStr
    content: NonEmptyStr


class UpdateCommentRequest(UpdateBody):
    content: Optional[NonEmptyStr] = None


class UserOut(Row):
    id: str
    email: str
    name: str
    created_at: datetime


class PostOut(Row):
    id: str
    user_id: str
    title: str
    content: str
    created_at: datetime


class CommentOut(Row):
    id: str
    user_id: str
    post_id: str
    content: str
    created_at: datetime


class MessageOut(BaseModel):
    message: str
