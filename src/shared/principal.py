"""The authenticated caller, as established by the upstream auth layer."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    user_id: str
    email: str | None = None
    is_verified: bool = False
    is_admin: bool = False
