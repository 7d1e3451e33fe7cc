"""Value types for the permissions domain."""

from pydantic import BaseModel, ConfigDict, Field


class OAuthPermission(BaseModel):
    """Descriptor of an opaque permission string such as ``read_calendar``.

    Immutable catalog entry; looked up, never mutated by the core.
    """

    model_config = ConfigDict(frozen=True)

    permission: str = Field(..., min_length=1)
    description: str
    roles: tuple[str, ...] = Field(default=(), description="Roles required to grant it")
    http_verbs: tuple[str, ...] = ()
    uris: tuple[str, ...] = ()
    is_default: bool = Field(False, description="Granted when a registration requests none")
