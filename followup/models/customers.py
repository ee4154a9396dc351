"""Models for the customer directory."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import Gender


class Customer(BaseModel):
    """A directory entry used by the share picker."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Customer identifier (user id)")
    name: str = Field(default="", description="Full name")
    gender: Gender | None = Field(None, description="Gender if known")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @classmethod
    def from_record(cls, record: dict) -> "Customer":
        """Build a customer from a directory record.

        The directory sends ``user_id``/``full_name`` and a numeric gender
        where 1 means male.
        """
        raw_gender = record.get("gender")
        gender = None
        if raw_gender in (1, "1", "male", "Male"):
            gender = Gender.MALE
        elif raw_gender not in (None, ""):
            gender = Gender.FEMALE

        return cls(
            id=record.get("user_id", record.get("id")),
            name=record.get("full_name", record.get("name")) or "",
            gender=gender,
        )
