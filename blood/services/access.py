"""Who may do what.

The identity collaborator answers two questions about a caller principal
(``is_admin`` / ``is_user``); ``AccessPolicy`` turns those answers plus the
resource's ownership into a single allow/deny decision per operation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, Optional

from django.conf import settings
from django.contrib.auth.models import Group, User

from blood.exceptions import InvalidInput, NotFound, Unauthorized

logger = logging.getLogger(__name__)


ROLE_ADMIN = "admin"
ROLE_USER = "user"


class AccessControl(ABC):
    @abstractmethod
    def is_admin(self, caller: str) -> bool: ...

    @abstractmethod
    def is_user(self, caller: str) -> bool: ...

    @abstractmethod
    def grant(self, principal: str, role: str) -> None: ...


class StaticAccessControl(AccessControl):
    """Explicit admin/user sets. Admins are always users too."""

    def __init__(self, admins: Iterable[str] = (), users: Iterable[str] = ()):
        self.admins = set(admins)
        self.users = set(users) | self.admins

    def is_admin(self, caller):
        return caller in self.admins

    def is_user(self, caller):
        return caller in self.users

    def grant(self, principal, role):
        if role == ROLE_ADMIN:
            self.admins.add(principal)
        self.users.add(principal)


class DjangoAccessControl(AccessControl):
    """Principals are usernames of active ``auth.User`` rows."""

    @property
    def admin_group(self) -> str:
        return getattr(settings, "MATCHING_ADMIN_GROUP", "ADMIN")

    def _user(self, caller: str) -> Optional[User]:
        if not caller:
            return None
        return User.objects.filter(username=caller, is_active=True).first()

    def is_admin(self, caller):
        user = self._user(caller)
        if user is None:
            return False
        return user.is_superuser or user.groups.filter(name=self.admin_group).exists()

    def is_user(self, caller):
        return self._user(caller) is not None

    def grant(self, principal, role):
        user = User.objects.filter(username=principal).first()
        if user is None:
            raise NotFound(f"User {principal} not found")
        if not user.is_active:
            user.is_active = True
            user.save(update_fields=["is_active"])
        if role == ROLE_ADMIN:
            group, _ = Group.objects.get_or_create(name=self.admin_group)
            group.user_set.add(user)


class Action:
    DONOR_WRITE = "donor.write"
    DONOR_READ = "donor.read"
    DONOR_LIST = "donor.list"
    DONOR_RECORD_DONATION = "donor.record_donation"
    REQUEST_CREATE = "request.create"
    REQUEST_READ = "request.read"
    REQUEST_UPDATE_STATUS = "request.update_status"
    REQUEST_OVERRIDE_STATUS = "request.override_status"
    REQUEST_LIST_PUBLIC = "request.list_public"
    INTEREST_EXPRESS = "interest.express"
    INTEREST_READ = "interest.read"
    MATCH_CONFIRM = "match.confirm"
    MATCH_READ = "match.read"
    MATCH_LIST = "match.list"
    QUERY_SEARCH = "query.search"
    QUERY_SUGGEST = "query.suggest"
    STATS_READ = "stats.read"
    PROFILE_READ = "profile.read"
    PROFILE_WRITE = "profile.write"
    ROLE_ASSIGN = "role.assign"


@dataclass(frozen=True)
class Resource:
    """Ownership facts about the thing being acted on.

    ``owner`` is the principal owning the resource (absent for a brand-new
    record); ``participants`` are other principals with a legitimate stake,
    e.g. owners of donors that expressed interest in a request.
    """

    owner: Optional[str] = None
    participants: FrozenSet[str] = field(default_factory=frozenset)


NO_RESOURCE = Resource()


class AccessPolicy:
    def __init__(self, access: AccessControl):
        self.access = access
        self._rules: Dict[str, Callable[[str, Resource], bool]] = {
            Action.DONOR_WRITE: self._new_or_owner_or_admin,
            Action.DONOR_READ: self._owner_or_admin,
            Action.DONOR_LIST: self._admin,
            Action.DONOR_RECORD_DONATION: self._admin,
            Action.REQUEST_CREATE: self._any_user,
            Action.REQUEST_READ: self._owner_admin_or_participant,
            Action.REQUEST_UPDATE_STATUS: self._owner_or_admin,
            Action.REQUEST_OVERRIDE_STATUS: self._admin,
            Action.REQUEST_LIST_PUBLIC: self._any_user,
            Action.INTEREST_EXPRESS: self._owner_or_admin,
            Action.INTEREST_READ: self._owner_or_admin,
            # No admin override: only the requester picks their donor.
            Action.MATCH_CONFIRM: self._owner,
            Action.MATCH_READ: self._owner_admin_or_participant,
            Action.MATCH_LIST: self._admin,
            Action.QUERY_SEARCH: self._any_user,
            Action.QUERY_SUGGEST: self._owner_or_admin,
            Action.STATS_READ: self._admin,
            Action.PROFILE_READ: self._owner_or_admin,
            Action.PROFILE_WRITE: self._any_user,
            Action.ROLE_ASSIGN: self._admin,
        }

    def allows(self, caller: str, action: str, resource: Resource = NO_RESOURCE) -> bool:
        try:
            rule = self._rules[action]
        except KeyError:
            raise InvalidInput(f"Unknown action {action!r}") from None
        if not self.access.is_user(caller):
            return False
        return rule(caller, resource)

    def check(self, caller: str, action: str, resource: Resource = NO_RESOURCE) -> None:
        if not self.allows(caller, action, resource):
            logger.warning("Denied %s for caller %r", action, caller)
            raise Unauthorized(f"Not allowed to perform {action}")

    def is_admin(self, caller: str) -> bool:
        return self.access.is_admin(caller)

    def _any_user(self, caller, resource):
        return True

    def _admin(self, caller, resource):
        return self.access.is_admin(caller)

    def _owner(self, caller, resource):
        return resource.owner is not None and resource.owner == caller

    def _owner_or_admin(self, caller, resource):
        return self._owner(caller, resource) or self.access.is_admin(caller)

    def _new_or_owner_or_admin(self, caller, resource):
        return resource.owner is None or self._owner_or_admin(caller, resource)

    def _owner_admin_or_participant(self, caller, resource):
        return caller in resource.participants or self._owner_or_admin(caller, resource)
