"""
Validation for incoming contact submissions.

Two layers run before anything touches the store:

1. ``check_upfront`` - cheap presence and email-shape checks that produce the
   two fixed user-facing messages.
2. ``apply_ruleset`` - the full field rules from ``ContactSubmission``, which
   report every violation at once.
"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from contractor_api.models.contact import ContactSubmission

REQUIRED_FIELDS = ("name", "email", "service", "message")
SUBMISSION_FIELDS = ("name", "email", "phone", "service", "message")
SIMPLE_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MISSING_FIELDS_MESSAGE = "Please fill in all required fields."
INVALID_EMAIL_MESSAGE = "Please enter a valid email address."


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class UpfrontFailure:
    message: str
    fields: List[str] = field(default_factory=list)


def find_missing_fields(payload: Mapping[str, Any]) -> List[str]:
    return [name for name in REQUIRED_FIELDS if not payload.get(name)]


def check_upfront(payload: Mapping[str, Any]) -> Optional[UpfrontFailure]:
    """Presence check, then the loose ``x@y.z`` email shape. None means pass."""
    missing = find_missing_fields(payload)
    if missing:
        return UpfrontFailure(MISSING_FIELDS_MESSAGE, missing)

    if not SIMPLE_EMAIL_PATTERN.fullmatch(str(payload["email"])):
        return UpfrontFailure(INVALID_EMAIL_MESSAGE, ["email"])

    return None


def apply_ruleset(payload: Mapping[str, Any]) -> Tuple[Optional[ContactSubmission], List[FieldViolation]]:
    """
    Run the full field rules over a raw payload.

    Returns:
        tuple: (normalised submission or None, list of violations)
    """
    data = {name: payload.get(name) for name in SUBMISSION_FIELDS}
    try:
        return ContactSubmission(**data), []
    except ValidationError as e:
        violations = [
            FieldViolation(str(error["loc"][0]) if error["loc"] else "body", error["msg"])
            for error in e.errors()
        ]
        return None, violations


def normalise_unchecked(payload: Mapping[str, Any]) -> ContactSubmission:
    """
    Build a submission without enforcing the field rules.

    Used when strict validation is switched off: values are trimmed (and the
    email lowercased) the same way the ruleset would, but nothing is rejected.
    """
    values = {}
    for name in SUBMISSION_FIELDS:
        value = payload.get(name)
        if isinstance(value, str):
            value = value.strip()
        elif value is not None:
            value = str(value)
        values[name] = value
    if not values["phone"]:
        values["phone"] = None
    if values["email"]:
        values["email"] = values["email"].lower()
    return ContactSubmission.model_construct(**values)
