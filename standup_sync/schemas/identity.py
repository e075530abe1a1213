# standup_sync/schemas/identity.py
from pydantic import BaseModel, Field


class Identity(BaseModel):
    """
    Caller identity as asserted by the upstream auth layer.

    ``is_admin`` is a custom claim; this service never grants it itself.
    """

    uid: str = Field(..., example="uid-123")
    email: str = Field("", example="asha@example.com")
    display_name: str = Field("", example="Asha Rao")
    is_admin: bool = False
