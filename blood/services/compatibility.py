"""ABO/Rh red-cell compatibility.

One canonical table keyed by recipient type; the donor-side lookup is derived
from it so the two directions can never disagree.
"""

from __future__ import annotations

from typing import Dict, FrozenSet

from blood.constants import BloodType


_RECIPIENT_TO_DONORS: Dict[str, FrozenSet[str]] = {
    BloodType.O_NEGATIVE: frozenset({BloodType.O_NEGATIVE}),
    BloodType.O_POSITIVE: frozenset({BloodType.O_NEGATIVE, BloodType.O_POSITIVE}),
    BloodType.A_NEGATIVE: frozenset({BloodType.O_NEGATIVE, BloodType.A_NEGATIVE}),
    BloodType.A_POSITIVE: frozenset({
        BloodType.O_NEGATIVE,
        BloodType.O_POSITIVE,
        BloodType.A_NEGATIVE,
        BloodType.A_POSITIVE,
    }),
    BloodType.B_NEGATIVE: frozenset({BloodType.O_NEGATIVE, BloodType.B_NEGATIVE}),
    BloodType.B_POSITIVE: frozenset({
        BloodType.O_NEGATIVE,
        BloodType.O_POSITIVE,
        BloodType.B_NEGATIVE,
        BloodType.B_POSITIVE,
    }),
    BloodType.AB_NEGATIVE: frozenset({
        BloodType.O_NEGATIVE,
        BloodType.A_NEGATIVE,
        BloodType.B_NEGATIVE,
        BloodType.AB_NEGATIVE,
    }),
    # Universal recipient
    BloodType.AB_POSITIVE: frozenset(BloodType.values),
}

_DONOR_TO_RECIPIENTS: Dict[str, FrozenSet[str]] = {
    donor: frozenset(
        recipient for recipient, donors in _RECIPIENT_TO_DONORS.items() if donor in donors
    )
    for donor in BloodType.values
}


def is_valid_blood_type(value) -> bool:
    return value in BloodType.values


def compatible_donor_types(recipient_type: str) -> FrozenSet[str]:
    """Every donor type that may give red cells to ``recipient_type``."""

    try:
        return _RECIPIENT_TO_DONORS[recipient_type]
    except KeyError:
        raise ValueError(f"Unknown blood type: {recipient_type!r}") from None


def compatible_recipient_types(donor_type: str) -> FrozenSet[str]:
    try:
        return _DONOR_TO_RECIPIENTS[donor_type]
    except KeyError:
        raise ValueError(f"Unknown blood type: {donor_type!r}") from None


def is_compatible(donor_type: str, recipient_type: str) -> bool:
    if not (is_valid_blood_type(donor_type) and is_valid_blood_type(recipient_type)):
        return False
    return donor_type in _RECIPIENT_TO_DONORS[recipient_type]
