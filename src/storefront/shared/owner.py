"""Cart owner references.

A cart belongs to exactly one owner: an authenticated user or an anonymous
guest session. The two kinds are distinct types so callers cannot build an
owner that is both or neither.
"""

from dataclasses import dataclass

from storefront.shared.errors import InvalidRequest


@dataclass(frozen=True)
class User:
    user_id: str

    def describe(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True)
class Guest:
    session_id: str

    def describe(self) -> str:
        return f"guest:{self.session_id}"


Owner = User | Guest


def owner_from(user_id: str | None = None, session_id: str | None = None) -> Owner:
    """Build an owner from request data. An authenticated user takes precedence."""
    if user_id:
        return User(user_id=str(user_id))
    if session_id:
        return Guest(session_id=str(session_id))
    raise InvalidRequest("Either user authentication or session ID is required")


def require_user(owner: Owner, action: str) -> User:
    if not isinstance(owner, User):
        raise InvalidRequest(f"{action} requires an authenticated user")
    return owner
