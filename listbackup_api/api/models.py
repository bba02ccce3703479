"""Request bodies.

Fields default to empty values so handlers can report which required field
is missing with a specific message instead of a generic schema error.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UpdateAccountRequest(RequestBody):
    name: str | None = None
    company: str | None = None
    settings: dict[str, Any] | None = None


class CreateTeamRequest(RequestBody):
    name: str = ""
    description: str = ""


class AddTeamMemberRequest(RequestBody):
    user_id: str = ""
    role: str = "member"


class CancelSubscriptionRequest(RequestBody):
    cancel_at_period_end: bool = False
    cancellation_reason: str = ""


class UploadLogoRequest(RequestBody):
    image_data: str = ""
    content_type: str = ""
    logo_type: str = "full"
    theme: str = "light"


class CreateConnectionRequest(RequestBody):
    name: str = ""
    auth_type: str = ""
    credentials: dict[str, Any] | None = None
