from __future__ import annotations

from typing import Callable, Dict, Optional

from haven_migrator.models import UserRef

from .errors import AuthorResolutionError, log_message, report_error, report_ok

UserLookup = Callable[[str], Optional[UserRef]]


def parse_author_map(field: str) -> Dict[str, str]:
    """
    Parse an author map such as ``"alice:alice@example.com,bob:bob@example.com"``.

    - Splits pairs on ',' and each pair on the first ':'
    - Trims spaces on both sides
    - Drops pairs with no colon or an empty side, with a warning

    Returns a ``source_id -> email`` dict in the order the pairs appear.
    A repeated source id keeps its first position but takes the later email.
    """
    mapping: Dict[str, str] = {}
    if not field:
        return mapping
    for raw in field.split(","):
        pair = raw.strip()
        if not pair:
            continue
        source_id, sep, email = pair.partition(":")
        source_id, email = source_id.strip(), email.strip()
        if not sep or not source_id or not email:
            log_message(f"Ignoring malformed author mapping entry '{pair}'", level="WARNING")
            report_error("AUTHOR_MAP_MALFORMED", {"entry": pair})
            continue
        mapping[source_id] = email
    return mapping


class AuthorMapping:
    """WordPress author ids resolved to Haven users, plus the fallback author."""

    def __init__(self, users: Dict[str, UserRef]) -> None:
        if not users:
            raise AuthorResolutionError(
                "No Haven users found matching author map. Create users first."
            )
        self.users = dict(users)
        self.fallback: UserRef = next(iter(self.users.values()))

    def __len__(self) -> int:
        return len(self.users)

    def author_for(self, source_id: Optional[str]) -> UserRef:
        return self.users.get(source_id or "", self.fallback)


def resolve_authors(field: str, user_lookup: UserLookup) -> AuthorMapping:
    """
    Build an :class:`AuthorMapping` from an author map string.

    Each email is looked up with ``user_lookup``; unknown emails are
    reported and left out.  The first resolved user becomes the fallback.

    :raises AuthorResolutionError: if the map is empty or nothing resolves.
    """
    pairs = parse_author_map(field)
    if not pairs:
        raise AuthorResolutionError(
            'AUTHOR_MAP is required. Example: AUTHOR_MAP="alice:alice@example.com,bob:bob@example.com"'
        )

    users: Dict[str, UserRef] = {}
    for source_id, email in pairs.items():
        user = user_lookup(email)
        if user is None:
            log_message(f"No Haven user found for {email}", level="WARNING")
            report_error("AUTHOR_NOT_FOUND", {"source_id": source_id, "email": email})
            continue
        users[source_id] = user
        log_message(f"Mapped WP author '{source_id}' -> Haven user {user.id} ({user.email or email})")
        report_ok("AUTHOR_MAPPED", {"source_id": source_id, "email": email}, {"user_id": user.id})
    return AuthorMapping(users)
