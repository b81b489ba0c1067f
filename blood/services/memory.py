"""Dictionary-backed store for tests and database-free callers."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Tuple

from blood.domain import (
    BloodRequestRecord,
    DonorInterestRecord,
    DonorRecord,
    MatchRecord,
    ProfileRecord,
)
from blood.services.store import (
    DonorRepository,
    InterestRepository,
    MatchRepository,
    ProfileRepository,
    RequestRepository,
    Store,
)


class _Keyed:
    def __init__(self, lock):
        self._lock = lock
        self._rows: Dict = {}

    def _get(self, key):
        with self._lock:
            return self._rows.get(key)

    def _put(self, key, value):
        with self._lock:
            self._rows[key] = value

    def _insert_if_absent(self, key, value) -> bool:
        with self._lock:
            if key in self._rows:
                return False
            self._rows[key] = value
            return True

    def scan(self):
        with self._lock:
            return iter(list(self._rows.values()))


class MemoryDonorRepository(_Keyed, DonorRepository):
    def get(self, donor_id, *, for_update=False):
        return self._get(donor_id)

    def put(self, donor: DonorRecord):
        self._put(donor.id, donor)

    def insert_if_absent(self, donor: DonorRecord) -> bool:
        return self._insert_if_absent(donor.id, donor)

    def lock_owner(self, owner):
        # ``MemoryStore.atomic`` already holds the store-wide lock.
        pass


class MemoryRequestRepository(_Keyed, RequestRepository):
    def get(self, request_id, *, for_update=False):
        return self._get(request_id)

    def put(self, blood_request: BloodRequestRecord):
        self._put(blood_request.id, blood_request)


class MemoryInterestRepository(_Keyed, InterestRepository):
    def get(self, key: Tuple[str, str]):
        return self._get(tuple(key))

    def insert_if_absent(self, interest: DonorInterestRecord) -> bool:
        return self._insert_if_absent(interest.key, interest)

    def exists(self, request_id, donor_id):
        return self._get((request_id, donor_id)) is not None

    def for_request(self, request_id):
        with self._lock:
            rows = [i for i in self._rows.values() if i.request_id == request_id]
        return sorted(rows, key=lambda i: i.key)

    def scan(self):
        with self._lock:
            return iter(sorted(self._rows.values(), key=lambda i: i.key))


class MemoryMatchRepository(_Keyed, MatchRepository):
    def get(self, request_id):
        return self._get(request_id)

    def insert_if_absent(self, match: MatchRecord) -> bool:
        return self._insert_if_absent(match.request_id, match)

    def scan(self):
        with self._lock:
            return iter(sorted(self._rows.values(), key=lambda m: (m.request_id, m.donor_id)))


class MemoryProfileRepository(_Keyed, ProfileRepository):
    def get(self, principal):
        return self._get(principal)

    def put(self, profile: ProfileRecord):
        self._put(profile.principal, profile)


class MemoryStore(Store):
    def __init__(self):
        self._lock = threading.RLock()
        self.donors = MemoryDonorRepository(self._lock)
        self.requests = MemoryRequestRepository(self._lock)
        self.interests = MemoryInterestRepository(self._lock)
        self.matches = MemoryMatchRepository(self._lock)
        self.profiles = MemoryProfileRepository(self._lock)

    @contextmanager
    def atomic(self):
        with self._lock:
            yield self
