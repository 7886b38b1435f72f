"""Directory cache contract (email <-> user id lookup)."""

from typing import Callable, Optional, Protocol


class DirectoryCache(Protocol):
    """Resolves Nextcloud users by email and back."""

    def try_get_uid(self, email: str) -> Optional[str]:
        ...

    def try_get_primary_email(self, user_id: str) -> Optional[str]:
        ...


# Builds a directory cache for a refresh horizon given in hours.
DirectoryFactory = Callable[[int], DirectoryCache]
