"""
Username availability checks.

All comparisons are case-insensitive. These checks reject early; the unique
index on users is what actually guarantees uniqueness.
"""

from collections.abc import Iterable

from .exceptions import DeniedUsername, DuplicatedUsername, UsedUsername
from .ports import RegistrationStore


def normalize_username(username: str) -> str:
    return username.lower()


def ensure_username_available(
    store: RegistrationStore, username: str, preserved_usernames: Iterable[str]
) -> None:
    """
    Raise if a local username cannot be registered.

    Raises:
        DuplicatedUsername: An active local account holds it
        UsedUsername: It belonged to a deleted account
        DeniedUsername: The instance reserves it
    """
    username_lower = normalize_username(username)

    if store.local_username_exists(username_lower):
        raise DuplicatedUsername()

    if store.username_was_used(username_lower):
        raise UsedUsername()

    if username_lower in {normalize_username(name) for name in preserved_usernames}:
        raise DeniedUsername()
