"""Authentication context passed explicitly to services."""

from dataclasses import dataclass
from typing import Any

from .config import get_current_user


class AuthError(Exception):
    """Raised when an operation needs a signed-in user."""

    pass


@dataclass(frozen=True)
class AuthContext:
    """Identity of the user a request acts on behalf of."""

    user_id: str | None = None
    display_name: str | None = None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()

    @classmethod
    def from_config(cls) -> "AuthContext":
        """Build the context from the saved CLI session or environment."""
        user_id, display_name = get_current_user()
        return cls(user_id=user_id, display_name=display_name)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def owns(self, document: dict[str, Any]) -> bool:
        """Check if a stored document belongs to this user."""
        return self.is_authenticated and document.get("user_id") == self.user_id


def require_user(ctx: AuthContext) -> str:
    """
    Return the current user id.

    Raises:
        AuthError: If the context is anonymous
    """
    if not ctx.user_id:
        raise AuthError("Utilisateur non connecté")
    return ctx.user_id
