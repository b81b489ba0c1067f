from __future__ import annotations

import logging
from typing import Optional

from blood.constants import UserRole
from blood.domain import ProfileRecord
from blood.exceptions import InvalidInput, NotFound
from blood.services.access import ROLE_ADMIN, ROLE_USER, Action, Resource
from blood.services.base import ServiceBase, require_text

logger = logging.getLogger(__name__)


class ProfileService(ServiceBase):
    def get_caller_profile(self, caller: str) -> Optional[ProfileRecord]:
        self.policy.check(caller, Action.PROFILE_READ, Resource(owner=caller))
        return self.store.profiles.get(caller)

    def get_profile(self, caller: str, principal: str) -> ProfileRecord:
        self.policy.check(caller, Action.PROFILE_READ, Resource(owner=principal))
        profile = self.store.profiles.get(principal)
        if profile is None:
            raise NotFound(f"No profile for {principal}")
        return profile

    def save_caller_profile(self, caller: str, name: str, role: str, contact_info: str) -> ProfileRecord:
        self.policy.check(caller, Action.PROFILE_WRITE)
        if role not in UserRole.values:
            raise InvalidInput(f"{role!r} is not a valid role", field="role")
        profile = ProfileRecord(
            principal=caller,
            name=require_text(name, "name"),
            role=str(role),
            contact_info=require_text(contact_info, "contact_info"),
        )
        with self.store.atomic():
            self.store.profiles.put(profile)
        return profile

    def assign_role(self, caller: str, principal: str, role: str) -> None:
        self.policy.check(caller, Action.ROLE_ASSIGN)
        if role not in (ROLE_ADMIN, ROLE_USER):
            raise InvalidInput(f"{role!r} is not a valid role", field="role")
        self.policy.access.grant(require_text(principal, "principal"), role)
        logger.info("%s granted role %s to %s", caller, role, principal)
