import datetime
import math
import uuid
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.base.auth.passwords import MAX_PASSWORD_BYTES
from src.base.models.role import Role

MIN_PASSWORD_LENGTH = 8
# Keeps (page - 1) * per_page inside a 64-bit SQL integer
MAX_PAGE = 2**31


def _strip_lower(value):
    return value.strip().lower() if isinstance(value, str) else value


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must not exceed {MAX_PASSWORD_BYTES} bytes")
    return value


Email = Annotated[EmailStr, BeforeValidator(_strip_lower)]

Password = Annotated[
    str,
    Field(min_length=MIN_PASSWORD_LENGTH),
    AfterValidator(_check_password_bytes),
]

DisplayName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)
]

AvatarUrl = Annotated[AnyUrl, AfterValidator(str)]

SearchTerm = Annotated[str, StringConstraints(max_length=100)]

OrderBy = Literal["createdAt", "name", "email", "updatedAt"]
OrderDirection = Literal["asc", "desc"]


class UserListQuery(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int = Field(1, ge=1, le=MAX_PAGE)
    per_page: int = Field(10, ge=1, le=100)
    order_by: OrderBy = "createdAt"
    order_direction: OrderDirection = "desc"
    search: Annotated[SearchTerm | None, BeforeValidator(_blank_to_none)] = None
    role: Annotated[str | None, BeforeValidator(_blank_to_none)] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: DisplayName
    email: Email
    password: Password
    role: Annotated[Role, BeforeValidator(_strip_lower)] = Role.USER
    avatar_url: AvatarUrl | None = Field(None, alias="avatarUrl")


class UserUpdate(BaseModel):
    """Partial update. Omitted fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True)

    name: DisplayName | None = None
    email: Email | None = None
    password: Password | None = None
    avatar_url: AvatarUrl | None = Field(None, alias="avatarUrl")
    role: Role | None = None

    @field_validator("name", "email", "password", "role", mode="before")
    @classmethod
    def _reject_null(cls, value):
        # Only avatarUrl may be cleared
        if value is None:
            raise ValueError("Field may not be null")
        return value

    @model_validator(mode="after")
    def _require_changes(self):
        if not self.model_fields_set:
            raise ValueError("No fields to update")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, mode="json")


class UserResponse(BaseModel):
    """Public projection of a user record. Has no password field."""

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )

    id: uuid.UUID
    name: str
    email: str
    role: Role
    avatar_url: str | None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class PageMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    page: int
    per_page: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class UserListResponse(BaseModel):
    items: list[UserResponse]
    meta: PageMeta


def build_page_meta(total: int, page: int, per_page: int) -> PageMeta:
    total_pages = math.ceil(total / per_page)
    return PageMeta(
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )
