"""
Current-user identity.

The identity provider is an external collaborator; the sync layer only
carries an opaque identifier and passes it explicitly through every
request instead of reading it from ambient state.
"""

from dataclasses import dataclass

USER_ID_HEADER = "X-User-ID"
EXTERNAL_ID_HEADER = "X-Clerk-ID"


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Opaque current-user identity.

    Attributes:
        user_id: Backend user id (sent as X-User-ID).
        external_id: Identity-provider user id (sent as X-Clerk-ID).
        email: Primary email, used when syncing the user.
        display_name: Display name, used when syncing the user.
        avatar: Profile image URL, used when syncing the user.
    """

    user_id: str | None = None
    external_id: str | None = None
    email: str = ""
    display_name: str = ""
    avatar: str = ""

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id or self.external_id)

    @property
    def label(self) -> str:
        """Stable label used in export file names and logs."""
        return self.user_id or self.external_id or "anonymous"

    def headers(self) -> dict[str, str]:
        """Request headers carrying this identity."""
        if self.user_id:
            return {USER_ID_HEADER: self.user_id}
        if self.external_id:
            return {EXTERNAL_ID_HEADER: self.external_id}
        return {}

    def sync_payload(self) -> dict[str, str]:
        """Body for ``POST /auth/sync-user``."""
        return {
            "clerk_id": self.external_id or "",
            "email": self.email,
            "display_name": self.display_name or "User",
            "profile_image": self.avatar,
        }
