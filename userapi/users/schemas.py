from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_validator
from pydantic.alias_generators import to_camel

from ..validation.fields import validate_email, validate_length

NAME_MIN, NAME_MAX = 2, 100


def _check(result) -> None:
    if not result.is_valid:
        raise ValueError(result.message)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateUserDto(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    first_name: str
    last_name: str
    email: str
    bio: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, v: str) -> str:
        _check(validate_length(v, NAME_MIN, NAME_MAX, "First name"))
        return v

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, v: str) -> str:
        _check(validate_length(v, NAME_MIN, NAME_MAX, "Last name"))
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        _check(validate_email(v))
        return v.lower()


class UpdateUserDto(_CamelModel):
    """All fields optional; only the ones sent are applied."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            _check(validate_length(v, NAME_MIN, NAME_MAX, "First name"))
        return v

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            _check(validate_length(v, NAME_MIN, NAME_MAX, "Last name"))
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            _check(validate_email(v))
            return v.lower()
        return v

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class UserOut(_CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    bio: Optional[str] = None
    is_active: bool = True

    @computed_field(alias="fullName")  # type: ignore[prop-decorator]
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class PaginatedUsers(_CamelModel):
    items: List[UserOut]
    total: int
    page: int
    page_size: int
