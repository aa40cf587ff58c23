"""Error taxonomy shared by services and routers."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ProviderLinkConflict(FieldError):
    """Field error raised because an external sign-in provider owns the field."""


class PawprintError(Exception):
    """Base class for domain exceptions."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(PawprintError):
    """User-correctable failure carrying every field error found."""

    def __init__(self, errors: Iterable[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(err.message for err in self.errors))

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([FieldError(field, message)])

    def fields(self) -> list[str]:
        return [err.field for err in self.errors]


class NotFoundError(PawprintError):
    pass


class AuthenticationRequired(PawprintError):
    pass


class TransientSideEffectError(PawprintError):
    """A best-effort follow-up step failed after the primary write succeeded."""


class UnexpectedError(PawprintError):
    pass


@contextmanager
def storage_guard():
    """Re-raise database failures during a mutation as UnexpectedError."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise UnexpectedError(str(exc)) from exc
