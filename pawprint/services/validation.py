"""
Field validation for account create/edit/authenticate requests.

Every rule is a plain function over a normalized snapshot of the submitted
fields returning at most one FieldError, so a rule short-circuits inside its
own field while independent fields all get reported. A request's error list
is the concatenation of its rules' results, in field order. Nothing in this
module writes to storage.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Mapping, Optional

from pawprint.core.errors import FieldError, ProviderLinkConflict
from pawprint.db.models import ProviderLink, User

PASSWORD_MIN_LENGTH = 6
NAME_MIN_LENGTH = 2

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

AccountLookup = Callable[[str], Optional[User]]
PasswordCheck = Callable[[str, Optional[str]], bool]
Rule = Callable[[Mapping[str, Optional[str]]], Optional[FieldError]]

_EMAIL_TAKEN = {
    ProviderLink.NONE: "An account with this email already exists",
    ProviderLink.FACEBOOK: "An account with this email already exists using the Facebook sign in option",
    ProviderLink.GOOGLE: "An account with this email already exists using the Google sign in option",
}


def _locked_message(what: str, provider: ProviderLink) -> str:
    return f"You cannot change your {what} since it is linked to the {provider.label} sign in option"


def snapshot(fields: Mapping[str, object]) -> dict[str, Optional[str]]:
    """Trim names, trim and lower-case email; passwords are kept verbatim."""
    def _text(key: str) -> Optional[str]:
        value = fields.get(key)
        return None if value is None else str(value)

    out: dict[str, Optional[str]] = {
        "firstName": _text("firstName"),
        "lastName": _text("lastName"),
        "email": _text("email"),
        "password": _text("password"),
        "confirmPassword": _text("confirmPassword"),
    }
    for key in ("firstName", "lastName"):
        if out[key] is not None:
            out[key] = out[key].strip()
    if out["email"] is not None:
        out["email"] = out["email"].strip().lower()
    return out


def _run(fields: Mapping[str, Optional[str]], rules: Iterable[Rule]) -> list[FieldError]:
    return [err for err in (rule(fields) for rule in rules) if err is not None]


def _optional(field: str, rule: Rule, *, blank_is_absent: bool = False) -> Rule:
    def check(fields):
        value = fields.get(field)
        if value is None or (blank_is_absent and value == ""):
            return None
        return rule(fields)
    return check


# ------------------------------------------------------------------ rules

def _name(field: str, label: str) -> Rule:
    def check(fields):
        if len(fields.get(field) or "") < NAME_MIN_LENGTH:
            return FieldError(field, f"{label} must be a minimum of {NAME_MIN_LENGTH} characters")
        return None
    return check


def _email_format(value: str) -> Optional[FieldError]:
    if not value:
        return FieldError("email", "Email is required")
    if not EMAIL_RE.match(value):
        return FieldError("email", "Enter a valid email address")
    return None


def _email_available(lookup: AccountLookup, owner_id: int | None = None) -> Rule:
    def check(fields):
        value = fields.get("email") or ""
        bad_format = _email_format(value)
        if bad_format:
            return bad_format
        existing = lookup(value)
        if existing is None or (owner_id is not None and existing.id == owner_id):
            return None
        return FieldError("email", _EMAIL_TAKEN[existing.provider_link])
    return check


def _password_length(message: str) -> Rule:
    def check(fields):
        if len(fields.get("password") or "") < PASSWORD_MIN_LENGTH:
            return FieldError("password", message)
        return None
    return check


def _confirm_matches(message: str) -> Rule:
    def check(fields):
        if fields.get("confirmPassword") != fields.get("password"):
            return FieldError("confirmPassword", message)
        return None
    return check


def _edit_email(account: User, lookup: AccountLookup) -> Rule:
    available = _email_available(lookup, owner_id=account.id)

    def check(fields):
        provider = account.provider_link
        if provider is not ProviderLink.NONE:
            return ProviderLinkConflict("email", _locked_message("email", provider))
        return available(fields)
    return check


def _edit_password(account: User) -> Rule:
    length = _password_length(f"New password must be a minimum of {PASSWORD_MIN_LENGTH} characters")

    def check(fields):
        provider = account.provider_link
        if provider is not ProviderLink.NONE:
            return ProviderLinkConflict("password", _locked_message("password", provider))
        too_short = length(fields)
        if too_short:
            return too_short
        if not fields.get("confirmPassword"):
            return FieldError("password", "Confirm password is required when setting a new password")
        return None
    return check


def _login_email(account: Optional[User]) -> Rule:
    def check(fields):
        if account is None:
            return FieldError("email", "An account using this email does not exist")
        provider = account.provider_link
        if provider is not ProviderLink.NONE:
            return ProviderLinkConflict("email", _EMAIL_TAKEN[provider])
        return None
    return check


def _login_password(account: Optional[User], verify: PasswordCheck) -> Rule:
    def check(fields):
        if account is None or account.provider_link is not ProviderLink.NONE:
            return FieldError("password", "Incorrect password")
        if not verify(fields.get("password") or "", account.password_hash):
            return FieldError("password", "Incorrect password")
        return None
    return check


# ------------------------------------------------------------------ operations

def validate_create(fields: Mapping[str, Optional[str]], lookup: AccountLookup) -> list[FieldError]:
    return _run(
        fields,
        [
            _name("firstName", "First name"),
            _name("lastName", "Last name"),
            _email_available(lookup),
            _password_length(f"Password must be a minimum of {PASSWORD_MIN_LENGTH} characters"),
            _confirm_matches("Passwords must match"),
        ],
    )


def validate_edit(fields: Mapping[str, Optional[str]], account: User, lookup: AccountLookup) -> list[FieldError]:
    """Only supplied (non-null) fields are checked."""
    return _run(
        fields,
        [
            _optional("firstName", _name("firstName", "First name")),
            _optional("lastName", _name("lastName", "Last name")),
            _optional("email", _edit_email(account, lookup)),
            _optional("password", _edit_password(account)),
            _optional("confirmPassword", _confirm_matches("New passwords must match"), blank_is_absent=True),
        ],
    )


def validate_authenticate(
    fields: Mapping[str, Optional[str]],
    account: Optional[User],
    verify: PasswordCheck,
) -> list[FieldError]:
    """`account` is the stored account for the submitted email, if any."""
    return _run(fields, [_login_email(account), _login_password(account, verify)])
