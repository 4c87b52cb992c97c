"""
Caller identity and the role -> capability table.

Authentication happens upstream; the gateway forwards the verified role,
user id and display name as request headers.  Everything that needs to
know what a caller may do asks ``Caller.can`` instead of comparing role
names inline.
"""
from dataclasses import dataclass
from enum import Enum

from fastapi import Request

from content_api.config import settings
from content_api.errors import Forbidden


class Role(str, Enum):
    USER = "User"
    ADMIN = "Admin"
    SUPER_ADMIN = "Super_Admin"


class Capability(str, Enum):
    VIEW_ALL = "view_all"
    WRITE = "write"
    PUBLISH = "publish"
    DELETE = "delete"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.USER: frozenset(),
    Role.ADMIN: frozenset({Capability.VIEW_ALL, Capability.WRITE, Capability.PUBLISH}),
    Role.SUPER_ADMIN: frozenset(
        {Capability.VIEW_ALL, Capability.WRITE, Capability.PUBLISH, Capability.DELETE}
    ),
}


@dataclass(frozen=True)
class Caller:
    role: Role | None = None
    user_id: str | None = None
    name: str | None = None

    @property
    def capabilities(self) -> frozenset[Capability]:
        if self.role is None:
            return frozenset()
        return ROLE_CAPABILITIES[self.role]

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def is_elevated(self) -> bool:
        return self.can(Capability.VIEW_ALL)


ANONYMOUS = Caller()


def parse_role(value: str | None) -> Role | None:
    """Map a header value to a Role; unknown or empty values mean anonymous."""
    if not value:
        return None
    try:
        return Role(value.strip())
    except ValueError:
        return None


async def get_caller(request: Request) -> Caller:
    """FastAPI dependency building the Caller from the gateway headers."""
    headers = request.headers
    return Caller(
        role=parse_role(headers.get(settings.ROLE_HEADER)),
        user_id=headers.get(settings.USER_ID_HEADER) or None,
        name=headers.get(settings.USER_NAME_HEADER) or None,
    )


def require(capability: Capability):
    """Return a dependency that rejects callers lacking *capability*."""

    async def _guard(request: Request) -> Caller:
        caller = await get_caller(request)
        if not caller.can(capability):
            raise Forbidden("Not authorized to perform this action")
        return caller

    return _guard
