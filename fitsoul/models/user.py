"""User models for Fitsoul."""

from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class UserProfile(BaseModel):
    """Body metrics collected during onboarding."""
    age: int = Field(default=0, ge=0)
    gender: str = ""
    height_cm: int = Field(default=0, ge=0)
    weight_kg: float = Field(default=0.0, ge=0)
    fitness_level: str = ""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used in the users collection."""
        return self.model_dump(by_alias=True)


class User(BaseModel):
    """Authenticated user identity.

    Missing values are normalised to empty strings / an empty tuple so
    callers never have to deal with None.
    """
    uid: str = ""
    email: str = ""
    display_name: str = ""
    goals: tuple[str, ...] = ()
    profile: UserProfile | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("uid", "email", "display_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("goals", mode="before")
    @classmethod
    def _none_to_no_goals(cls, value: Any) -> Any:
        return () if value is None else tuple(value)

    @classmethod
    def builder(cls) -> "UserBuilder":
        return UserBuilder()


class UserBuilder:
    """Fluent builder for User."""

    def __init__(self):
        self._uid: str | None = ""
        self._email: str | None = ""
        self._display_name: str | None = ""
        self._goals: list[str] | None = []
        self._profile: UserProfile | None = None

    def set_uid(self, uid: str | None) -> "UserBuilder":
        self._uid = uid
        return self

    def set_email(self, email: str | None) -> "UserBuilder":
        self._email = email
        return self

    def set_display_name(self, display_name: str | None) -> "UserBuilder":
        self._display_name = display_name
        return self

    def set_goals(self, goals: list[str] | None) -> "UserBuilder":
        self._goals = list(goals) if goals is not None else None
        return self

    def set_profile(self, profile: UserProfile | None) -> "UserBuilder":
        self._profile = profile
        return self

    def build(self) -> User:
        return User(
            uid=self._uid,
            email=self._email,
            display_name=self._display_name,
            goals=self._goals,
            profile=self._profile,
        )
