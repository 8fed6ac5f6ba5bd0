"""
Request bodies for the dashboard write operations.

Each schema names the 400 message its operation answers with, so validation
failures look the same whatever field was wrong. Field order is the order
the attribute words are sent to the router.
"""
from typing import Any, ClassVar, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app.core.errors import DashboardValidationError

M = TypeVar("M", bound=BaseModel)


class RouterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    required_message: ClassVar[str] = "Invalid request"

    def router_args(self) -> List[str]:
        """Attribute words for the set fields; booleans become yes/no."""
        words = []
        for name, field in type(self).model_fields.items():
            value = getattr(self, name)
            if value is None or value == "":
                continue
            if isinstance(value, bool):
                value = "yes" if value else "no"
            words.append(f"={field.alias or name}={value}")
        return words


class UpdateRequest(RouterRequest):
    @model_validator(mode="after")
    def _require_one_field(self):
        if not self.router_args():
            raise ValueError("at least one field must be provided")
        return self


class DisconnectSessionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    required_message: ClassVar[str] = "PPPoE user ID is required"

    id: str = Field(min_length=1)


class PppoeSecretCreate(RouterRequest):
    required_message: ClassVar[str] = "Username and password are required"

    name: str = Field(min_length=1)
    password: str = Field(min_length=1)
    service: Optional[str] = None
    profile: Optional[str] = None
    remote_address: Optional[str] = Field(default=None, alias="remote-address")
    local_address: Optional[str] = Field(default=None, alias="local-address")
    comment: Optional[str] = None
    disabled: Optional[bool] = None

    @model_validator(mode="after")
    def _default_service(self):
        if not self.service:
            self.service = "pppoe"
        return self


class PppoeSecretUpdate(UpdateRequest):
    required_message: ClassVar[str] = "No update data provided for the PPPoE secret"

    name: Optional[str] = None
    password: Optional[str] = None
    service: Optional[str] = None
    profile: Optional[str] = None
    remote_address: Optional[str] = Field(default=None, alias="remote-address")
    local_address: Optional[str] = Field(default=None, alias="local-address")
    comment: Optional[str] = None
    disabled: Optional[bool] = None


class QueueCreate(RouterRequest):
    required_message: ClassVar[str] = "Name, target, and max-limit are required for a new queue"

    name: str = Field(min_length=1)
    target: str = Field(min_length=1)
    max_limit: str = Field(min_length=1, alias="max-limit")
    burst_limit: Optional[str] = Field(default=None, alias="burst-limit")
    burst_threshold: Optional[str] = Field(default=None, alias="burst-threshold")
    burst_time: Optional[str] = Field(default=None, alias="burst-time")
    priority: Optional[str] = None
    parent: Optional[str] = None
    comment: Optional[str] = None
    disabled: Optional[bool] = None


class QueueUpdate(UpdateRequest):
    required_message: ClassVar[str] = "No update data provided for the queue"

    name: Optional[str] = None
    target: Optional[str] = None
    max_limit: Optional[str] = Field(default=None, alias="max-limit")
    burst_limit: Optional[str] = Field(default=None, alias="burst-limit")
    burst_threshold: Optional[str] = Field(default=None, alias="burst-threshold")
    burst_time: Optional[str] = Field(default=None, alias="burst-time")
    priority: Optional[str] = None
    parent: Optional[str] = None
    comment: Optional[str] = None
    disabled: Optional[bool] = None


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def parse_request(model: Type[M], payload: Any) -> M:
    """Validate a JSON body, raising the operation's 400 on any failure."""
    if not isinstance(payload, dict):
        payload = {}
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise DashboardValidationError(model.required_message, _describe(e))
