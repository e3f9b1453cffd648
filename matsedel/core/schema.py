"""Canonical Pydantic v2 models shared by every provider."""

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

from matsedel.core.errors import MalformedIdentifierError

# Separator between the provider ID and the provider-local menu ID.
SEGMENT_SEPARATOR = "."


class MenuID(BaseModel):
    """
    Composite menu identifier, serialized as ``<provider>.<provided_id>``.

    The separator is not escaped, so neither segment may contain it.
    """

    model_config = ConfigDict(frozen=True)

    provider: str
    provided_id: str

    @field_validator("provider", "provided_id")
    @classmethod
    def validate_segment(cls, value: str) -> str:
        """Reject empty segments and segments containing the separator."""
        if not value:
            raise MalformedIdentifierError("menu id segments cannot be empty")
        if SEGMENT_SEPARATOR in value:
            raise MalformedIdentifierError(
                f"menu id segment `{value}` cannot contain `{SEGMENT_SEPARATOR}`"
            )
        return value

    def encode(self) -> str:
        """Serialize to the single-token string form."""
        return f"{self.provider}{SEGMENT_SEPARATOR}{self.provided_id}"

    @classmethod
    def decode(cls, value: str) -> "MenuID":
        """
        Parse the single-token string form.

        Args:
            value: String such as ``skolmaten.85957``

        Returns:
            The parsed MenuID

        Raises:
            MalformedIdentifierError: Unless the string splits into exactly
                two non-empty segments
        """
        segments = value.split(SEGMENT_SEPARATOR)
        if len(segments) != 2 or not all(segments):
            raise MalformedIdentifierError(f"invalid menu id `{value}`")

        provider, provided_id = segments
        return cls(provider=provider, provided_id=provided_id)

    @model_serializer
    def serialize(self) -> str:
        return self.encode()

    def __str__(self) -> str:
        return self.encode()


class ProviderInfo(BaseModel):
    """Static description of a registered provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class ProviderMenu(BaseModel):
    """A menu as known to a single provider, before it is lifted into a Menu."""

    id: str
    title: str


class Menu(BaseModel):
    """A queryable menu (one school or station) exposed uniformly across providers."""

    id: MenuID
    title: str
    provider: ProviderInfo

    @classmethod
    def lift(cls, info: ProviderInfo, menu: ProviderMenu) -> "Menu":
        """Attach provider metadata to a provider-local menu."""
        return cls(
            id=MenuID(provider=info.id, provided_id=menu.id),
            title=menu.title,
            provider=info,
        )


class Meal(BaseModel):
    """A single dish served on a day."""

    value: str


class Day(BaseModel):
    """The meals served on one calendar date."""

    date: datetime.date
    meals: list[Meal] = Field(default_factory=list)
