"""
Signed-in user session.

Signing in upserts the identity-provider user into the backend. A failed
sync is reported on the session but never blocks access.
"""

from billow.errors import SyncError
from billow.lib import logs
from billow.models.identity import Identity
from billow.models.settings import UserProfile
from billow.services.billow_service import BillowService

LOG = logs.logger(__file__)


class UserSession:
    """
    Attributes:
        identity: Current user, or None when signed out.
        profile: Backend profile returned by the last successful sync.
        sync_error: Error of the last failed sync.
    """

    def __init__(self, service: BillowService) -> None:
        self.service = service
        self.identity: Identity | None = None
        self.profile: UserProfile | None = None
        self.sync_error: SyncError | None = None

    @property
    def is_signed_in(self) -> bool:
        return self.identity is not None and self.identity.is_authenticated

    async def sign_in(self, identity: Identity) -> UserProfile | None:
        """Adopt ``identity`` and sync it; returns the profile or None."""
        self.identity = identity
        self.sync_error = None
        try:
            self.profile = await self.service.sync_user(identity)
        except SyncError as exc:
            LOG.warning("sync_user failed - %s: %r", identity.label, exc)
            self.sync_error = exc
            return None
        return self.profile

    def sign_out(self) -> None:
        self.identity = None
        self.profile = None
        self.sync_error = None
