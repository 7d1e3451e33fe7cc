"""Value types for the clients domain."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Client(BaseModel):
    """A registered third-party application.

    Immutable once loaded; the core never mutates or deletes clients.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., repr=False, description="Consumer secret for request signing")
    application_name: str
    application_description: Optional[str] = None
    application_uri: Optional[str] = None
    callback_uri: Optional[str] = None
    login_name: Optional[str] = Field(None, description="Developer who registered the client")
    allowed_permissions: frozenset[str] = Field(default_factory=frozenset)
    enabled: bool = True
