"""
Entity store for users, posts and comments.

Every store is bound to one session and runs each operation as an
independent unit of work: it either commits a single-row change or raises
one of the typed errors from ``postboard.errors``. SQLAlchemy exceptions do
not leave this module.

Checks on create and update run in a fixed order and stop at the first
failure:
    1. required fields present and non-empty
    2. referenced rows exist
    3. unique columns not already taken

The database's own unique index still backs check 3, so a create that loses
a race to a concurrent request is reported as ``UniquenessViolation`` too.
Driver-level connection failures (OSError from asyncpg) surface as
``UnknownStorageError``.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.errors import (
    ForeignKeyViolation,
    NotFound,
    UniquenessViolation,
    UnknownStorageError,
    ValidationError,
)
from postboard.ids import new_id
from postboard.models import Comment, Post, User, utcnow

logger = logging.getLogger(__name__)

# SQLSTATE codes (class 23, integrity constraint violation)
NOT_NULL_VIOLATION = "23502"
FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"

UNEXPECTED_ERROR = "An unexpected error occurred"


SQLITE_CODES = {
    "SQLITE_CONSTRAINT_UNIQUE": UNIQUE_VIOLATION,
    "SQLITE_CONSTRAINT_PRIMARYKEY": UNIQUE_VIOLATION,
    "SQLITE_CONSTRAINT_FOREIGNKEY": FOREIGN_KEY_VIOLATION,
    "SQLITE_CONSTRAINT_NOTNULL": NOT_NULL_VIOLATION,
}

# Older sqlite3 modules carry no error name, only the engine's message
SQLITE_MESSAGES = {
    "UNIQUE constraint failed": UNIQUE_VIOLATION,
    "FOREIGN KEY constraint failed": FOREIGN_KEY_VIOLATION,
    "NOT NULL constraint failed": NOT_NULL_VIOLATION,
}


def _sqlite_code(error):
    name = getattr(error, "sqlite_errorname", None)
    if name in SQLITE_CODES:
        return SQLITE_CODES[name]
    if type(error).__module__.startswith("sqlite3"):
        message = str(error)
        for prefix, code in SQLITE_MESSAGES.items():
            if message.startswith(prefix):
                return code
    return None


def integrity_error_code(exc):
    """Return the SQLSTATE behind an IntegrityError, or None if the driver has none."""
    orig = getattr(exc, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
        code = _sqlite_code(candidate)
        if code:
            return code
    return None


class EntityStore:
    model = None
    label = ""
    required_fields: tuple = ()
    mutable_fields: tuple = ()
    unique_fields: tuple = ()
    # field name -> referenced model
    foreign_keys: dict = {}
    unique_message = ""

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def not_found_message(self):
        return f"{self.label} not found"

    async def create(self, fields):
        values = {name: fields.get(name) for name in self.required_fields}
        self._check_required(values)
        await self._check_foreign_keys(values)
        await self._check_unique(values)

        row = self.model(id=new_id(), created_at=utcnow(), **values)
        self.session.add(row)
        await self._commit()

        logger.info("Created %s %s", self.label.lower(), row.id)
        return row

    async def get_by_id(self, row_id):
        result = await self._execute(select(self.model).where(self.model.id == row_id))
        row = result.scalars().first()
        if row is None:
            raise NotFound(self.not_found_message)
        return row

    async def list_all(self):
        result = await self._execute(select(self.model))
        return list(result.scalars().all())

    async def list_by_foreign_key(self, field, value):
        if field not in self.foreign_keys:
            raise ValueError(f"{self.label} has no foreign key {field!r}")
        column = getattr(self.model, field)
        result = await self._execute(select(self.model).where(column == value))
        return list(result.scalars().all())

    async def update(self, row_id, fields):
        # id, created_at and relationship fields are never taken from input
        values = {
            name: fields[name]
            for name in self.mutable_fields
            if fields.get(name) is not None
        }
        self._check_required(values)

        row = await self.get_by_id(row_id)
        changed = {name: value for name, value in values.items() if getattr(row, name) != value}
        await self._check_unique(changed, exclude_id=row.id)

        for name, value in changed.items():
            setattr(row, name, value)
        if changed:
            await self._commit()
            logger.info("Updated %s %s (%s)", self.label.lower(), row.id, ", ".join(sorted(changed)))
        return row

    async def delete(self, row_id):
        result = await self._execute(delete(self.model).where(self.model.id == row_id))
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFound(self.not_found_message)
        await self._commit()
        logger.info("Deleted %s %s", self.label.lower(), row_id)

    def _check_required(self, values):
        for name, value in values.items():
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"Field {name} must be a string", field=name)
            if value is None or not value.strip():
                logger.debug("Rejected %s: missing %s", self.label.lower(), name)
                raise ValidationError(f"Missing required field: {name}", field=name)

    async def _check_foreign_keys(self, values):
        for name, target in self.foreign_keys.items():
            result = await self._execute(select(target.id).where(target.id == values[name]))
            if result.first() is None:
                logger.info("Rejected %s: %s %s does not exist", self.label.lower(), name, values[name])
                raise ForeignKeyViolation(
                    f"{target.__name__} {values[name]} does not exist", field=name
                )

    async def _check_unique(self, values, exclude_id=None):
        for name in self.unique_fields:
            if name not in values:
                continue
            column = getattr(self.model, name)
            stmt = select(self.model.id).where(column == values[name])
            if exclude_id is not None:
                stmt = stmt.where(self.model.id != exclude_id)
            result = await self._execute(stmt)
            if result.first() is not None:
                logger.info("Rejected %s: duplicate %s", self.label.lower(), name)
                raise UniquenessViolation(self.unique_message, field=name)

    async def _execute(self, statement):
        try:
            return await self.session.execute(statement)
        except (SQLAlchemyError, OSError) as exc:
            await self.session.rollback()
            logger.exception("Storage failure on %s", self.model.__tablename__)
            raise UnknownStorageError(UNEXPECTED_ERROR) from exc

    async def _commit(self):
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise self._translate_integrity_error(exc) from exc
        except (SQLAlchemyError, OSError) as exc:
            await self.session.rollback()
            logger.exception("Storage failure on %s", self.model.__tablename__)
            raise UnknownStorageError(UNEXPECTED_ERROR) from exc

    def _translate_integrity_error(self, exc):
        code = integrity_error_code(exc)
        if code == UNIQUE_VIOLATION:
            logger.info("Rejected %s: unique constraint raised by database", self.label.lower())
            return UniquenessViolation(self.unique_message or UNEXPECTED_ERROR)
        if code == FOREIGN_KEY_VIOLATION:
            return ForeignKeyViolation(f"Referenced row for {self.label.lower()} does not exist")
        if code == NOT_NULL_VIOLATION:
            return ValidationError(f"Missing required field for {self.label.lower()}")
        logger.error("Unclassified integrity error on %s: %s", self.model.__tablename__, exc.orig)
        return UnknownStorageError(UNEXPECTED_ERROR)


class UserStore(EntityStore):
    model = User
    label = "User"
    required_fields = ("email", "name")
    mutable_fields = ("email", "name")
    unique_fields = ("email",)
    unique_message = "A user with this email already exists"


class PostStore(EntityStore):
    model = Post
    label = "Post"
    required_fields = ("user_id", "title", "content")
    mutable_fields = ("title", "content")
    foreign_keys = {"user_id": User}


class CommentStore(EntityStore):
    model = Comment
    label = "Comment"
    required_fields = ("user_id", "post_id", "content")
    mutable_fields = ("content",)
    foreign_keys = {"user_id": User, "post_id": Post}
