import logging
import os
from contextlib import asynccontextmanager
from typing import List

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.database import get_db, init_models
from postboard.errors import (
    ForeignKeyViolation,
    NotFound,
    StoreError,
    UniquenessViolation,
    UnknownStorageError,
    ValidationError,
)
from postboard.schemas import (
    CommentOut,
    CreateCommentRequest,
    CreatePostRequest,
    CreateUserRequest,
    MessageOut,
    PostOut,
    UpdateCommentRequest,
    UpdatePostRequest,
    UpdateUserRequest,
    UserOut,
)
from postboard.store import CommentStore, PostStore, UserStore

logger = logging.getLogger(__name__)

API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CREATE_TABLES = os.getenv("CREATE_TABLES", "1") == "1"

ERROR_STATUS = {
    NotFound: 404,
    UniquenessViolation: 409,
    ForeignKeyViolation: 400,
    ValidationError: 400,
    UnknownStorageError: 500,
}


def setup_logging(level=LOG_LEVEL):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [handler]

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if CREATE_TABLES:
        await init_models()
    logger.info("Serving API under %s", API_PREFIX)
    yield


app = FastAPI(title="Postboard", lifespan=lifespan)
router = APIRouter(prefix=API_PREFIX)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    return JSONResponse({"error": exc.message}, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": describe_validation_error(exc.errors())}, status_code=400)


def describe_validation_error(errors):
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    kind = first.get("type")
    if kind == "missing" and not field:
        return "Request body is required"
    if kind == "missing":
        return f"Missing required field: {field}"
    if kind == "extra_forbidden":
        return f"Unknown field: {field}"
    if kind == "json_invalid":
        return "Request body is not valid JSON"
    if field:
        return f"Invalid value for {field}: {first.get('msg')}"
    return first.get("msg", "Invalid request")


def get_user_store(db: AsyncSession = Depends(get_db)):
    return UserStore(db)


def get_post_store(db: AsyncSession = Depends(get_db)):
    return PostStore(db)


def get_comment_store(db: AsyncSession = Depends(get_db)):
    return CommentStore(db)


@router.get("/", response_class=PlainTextResponse)
async def health():
    return "Hello Postboard!"


# Users


@router.get("/users", response_model=List[UserOut])
async def list_users(users: UserStore = Depends(get_user_store)):
    return await users.list_all()


@router.get("/users/{user_id}", response_model=UserOut)
async def get_user(user_id: str, users: UserStore = Depends(get_user_store)):
    return await users.get_by_id(user_id)


@router.post("/users", response_model=UserOut)
async def create_user(body: CreateUserRequest, users: UserStore = Depends(get_user_store)):
    """Create a user; the email must not belong to another user."""
    return await users.create(body.model_dump())


@router.put("/users/{user_id}", response_model=UserOut)
async def update_user(
    user_id: str, body: UpdateUserRequest, users: UserStore = Depends(get_user_store)
):
    return await users.update(user_id, body.model_dump(exclude_unset=True))


@router.delete("/users/{user_id}", response_model=MessageOut)
async def delete_user(user_id: str, users: UserStore = Depends(get_user_store)):
    """
    Delete one user. Posts and comments by the user are left in place
    and keep pointing at the removed id.
    """
    await users.delete(user_id)
    return {"message": "User deleted successfully"}


@router.get("/users/{user_id}/posts", response_model=List[PostOut])
async def list_user_posts(user_id: str, posts: PostStore = Depends(get_post_store)):
    return await posts.list_by_foreign_key("user_id", user_id)


@router.get("/users/{user_id}/comments", response_model=List[CommentOut])
async def list_user_comments(user_id: str, comments: CommentStore = Depends(get_comment_store)):
    return await comments.list_by_foreign_key("user_id", user_id)


# Posts


@router.get("/posts", response_model=List[PostOut])
async def list_posts(posts: PostStore = Depends(get_post_store)):
    return await posts.list_all()


@router.get("/posts/{post_id}", response_model=PostOut)
async def get_post(post_id: str, posts: PostStore = Depends(get_post_store)):
    return await posts.get_by_id(post_id)


@router.post("/posts", response_model=PostOut)
async def create_post(body: CreatePostRequest, posts: PostStore = Depends(get_post_store)):
    """Create a post owned by an existing user."""
    return await posts.create(body.model_dump())


@router.put("/posts/{post_id}", response_model=PostOut)
async def update_post(
    post_id: str, body: UpdatePostRequest, posts: PostStore = Depends(get_post_store)
):
    return await posts.update(post_id, body.model_dump(exclude_unset=True))


@router.delete("/posts/{post_id}", response_model=MessageOut)
async def delete_post(post_id: str, posts: PostStore = Depends(get_post_store)):
    await posts.delete(post_id)
    return {"message": "Post deleted successfully"}


@router.get("/posts/{post_id}/comments", response_model=List[CommentOut])
async def list_post_comments(post_id: str, comments: CommentStore = Depends(get_comment_store)):
    return await comments.list_by_foreign_key("post_id", post_id)


# Comments


@router.get("/comments", response_model=List[CommentOut])
async def list_comments(comments: CommentStore = Depends(get_comment_store)):
    return await comments.list_all()


@router.get("/comments/{comment_id}", response_model=CommentOut)
async def get_comment(comment_id: str, comments: CommentStore = Depends(get_comment_store)):
    return await comments.get_by_id(comment_id)


@router.post("/comments", response_model=CommentOut)
async def create_comment(
    body: CreateCommentRequest, comments: CommentStore = Depends(get_comment_store)
):
    """Create a comment; both the author and the post must exist."""
    return await comments.create(body.model_dump())


@router.put("/comments/{comment_id}", response_model=CommentOut)
async def update_comment(
    comment_id: str,
    body: UpdateCommentRequest,
    comments: CommentStore = Depends(get_comment_store),
):
    return await comments.update(comment_id, body.model_dump(exclude_unset=True))


@router.delete("/comments/{comment_id}", response_model=MessageOut)
async def delete_comment(comment_id: str, comments: CommentStore = Depends(get_comment_store)):
    await comments.delete(comment_id)
    return {"message": "Comment deleted successfully"}


app.include_router(router)
