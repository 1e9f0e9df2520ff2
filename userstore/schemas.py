"""Request/response models for the REST layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from userstore.domain.users import User, is_storable_text


class UserPayload(BaseModel):
    """
    Body of POST /users and PUT /users/{id}.

    Omitted fields stay at their zero value, which the store reads as
    "not provided". Any ``id`` in the body is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    age: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def name_must_be_utf8(cls, v: str) -> str:
        if not is_storable_text(v):
            raise ValueError("name must be valid UTF-8 text")
        return v

    def to_user(self) -> User:
        return User(name=self.name, age=self.age)


class UserOut(BaseModel):
    id: int
    name: str
    age: int

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(id=user.id, name=user.name, age=user.age)


def message(text: str, data: Any = None) -> dict:
    """Response envelope used by every endpoint."""
    return {"message": text, "data": data}


def validation_details(errors) -> list[dict]:
    """Field/message/type triples of a validation error, without the offending input."""
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in errors
    ]
