from typing import Protocol, TypeVar

from .exceptions import NotFoundException


class Owned(Protocol):
    user_id: str


OwnedT = TypeVar("OwnedT", bound=Owned)


def assert_ownership(entity: OwnedT | None, caller_id: str, not_found: NotFoundException) -> OwnedT:
    """Return ``entity`` if the caller owns it.

    Absent and foreign rows raise the same ``not_found`` so callers cannot
    discover other users' rows.
    """
    if entity is None or entity.user_id != caller_id:
        raise not_found
    return entity
