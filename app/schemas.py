from typing import Annotated

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


_URL_ADAPTER = TypeAdapter(AnyUrl)

MIN_REFRESH_INTERVAL_MS = 1000


class CardConfig(BaseModel):
    """Card configuration; keys beyond the known ones are stored as-is"""
    model_config = ConfigDict(extra="allow")

    apiUrl: str | None = Field(None, description="Upstream URL the card reads from")
    refreshInterval: int | float | None = Field(None, description="Refresh interval in milliseconds")

    @field_validator("apiUrl")
    @classmethod
    def validate_api_url(cls, v: str | None) -> str | None:
        """Require a valid URI while keeping the original string"""
        if v is None:
            return v
        try:
            _URL_ADAPTER.validate_python(v)
        except ValidationError:
            raise ValueError(f"apiUrl must be a valid uri: {v}")
        return v

    @field_validator("refreshInterval")
    @classmethod
    def validate_refresh_interval(cls, v: int | float | None) -> int | float | None:
        """Reject refresh intervals below one second"""
        if v is not None and v < MIN_REFRESH_INTERVAL_MS:
            raise ValueError(f"refreshInterval must be >= {MIN_REFRESH_INTERVAL_MS}")
        return v


class CardRequest(BaseModel):
    """Card create/replace payload"""
    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(None, description="Ignored; the path id is authoritative")
    type: str = Field(..., min_length=1, description="Card type (e.g. 'text', 'transit', 'events', 'tasks')")
    config: CardConfig = Field(..., description="Card configuration")


class ZoneConfig(BaseModel):
    """Layout of a single dashboard zone"""
    model_config = ConfigDict(extra="forbid")

    width: int | float
    height: int | float
    cards: list[Annotated[str, Field(min_length=1)]] = Field(default_factory=list, description="Card ids rendered in this zone")

    @field_validator("width", "height")
    @classmethod
    def validate_dimension(cls, v: int | float, info) -> int | float:
        """Zone dimensions cannot be negative"""
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


class ZonesConfig(BaseModel):
    """The three fixed zones of a dashboard profile"""
    model_config = ConfigDict(extra="forbid")

    left: ZoneConfig
    center: ZoneConfig
    right: ZoneConfig


class ProfileRequest(BaseModel):
    """Profile create/replace payload"""
    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(None, description="Ignored; the path id is authoritative")
    name: str = Field(..., min_length=1, description="Display name of the profile")
    zones: ZonesConfig


class ActiveProfileRequest(BaseModel):
    """Active profile pointer update"""
    model_config = ConfigDict(extra="forbid")

    profileId: str = Field(..., min_length=1, description="Id of an existing profile")


class ErrorResponse(BaseModel):
    """Standard error body for all endpoints"""
    error: str = Field(..., description="Human-readable error message")
