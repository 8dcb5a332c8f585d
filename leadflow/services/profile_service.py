"""Identity resolver used to denormalize actor names onto records."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from leadflow.models import Profile
from leadflow.services.base_service import BaseService

logger = logging.getLogger(__name__)


class ProfileService(BaseService):
    def get_profile(self, profile_id: int) -> Profile | None:
        return self.db.get(Profile, profile_id)

    def resolve_display_name(self, profile_id: int | None) -> str | None:
        """Return "First Last" for a profile, or None when it cannot be resolved.

        Lookup errors are logged and swallowed: a missing name never blocks the
        write that asked for it.
        """
        if profile_id is None:
            return None
        try:
            profile = self.get_profile(profile_id)
        except SQLAlchemyError:
            logger.warning(
                "profile.resolve_failed",
                extra={"event": "profile.resolve_failed", "profile_id": profile_id},
                exc_info=True,
            )
            return None
        if profile is None:
            return None
        return profile.display_name or None
