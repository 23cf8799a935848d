"""
Goodreads identifier normalization.

Turns free-form user input (numeric ids, "id-slug" tokens, profile URLs,
bare usernames) into a canonical identifier. Pure functions, no I/O.

Supported inputs:
- "42944663"
- "42944663-ben-wallace"
- "https://www.goodreads.com/user/show/42944663-ben-wallace"
- "https://www.goodreads.com/user/show/42944663"
- "https://www.goodreads.com/bewal416"
- "bewal416"
- any string containing a standalone run of 3+ digits
"""
import re
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlparse

from bookblend.core.errors import InvalidIdentifier

USERNAME_PREFIX = "username:"

GOODREADS_HOSTS = {"goodreads.com", "www.goodreads.com"}

_USER_SHOW_PATH = re.compile(r"^/user/show/([0-9]{3,})(?:-[^/]*)?/?$")
_USERNAME_PATH = re.compile(r"^/([A-Za-z][A-Za-z0-9_-]*)/?$")
_ID_WITH_SLUG = re.compile(r"^([0-9]{3,})(?:-[a-z0-9-]+)?$", re.IGNORECASE)
_USERNAME = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
# A digit run that is not glued to letters or other digits, so "123abc" does not match
_STANDALONE_DIGITS = re.compile(r"(?<![A-Za-z0-9])([0-9]{3,})(?![A-Za-z0-9])")
_NUMERIC_ID = re.compile(r"^[0-9]{3,}$")


@dataclass(frozen=True)
class NumericId:
    digits: str

    def __str__(self) -> str:
        return self.digits


@dataclass(frozen=True)
class UsernameId:
    handle: str

    def __str__(self) -> str:
        return f"{USERNAME_PREFIX}{self.handle}"


CanonicalId = Union[NumericId, UsernameId]


def _extract_from_goodreads_url(value: str) -> Optional[CanonicalId]:
    try:
        parsed = urlparse(value)
    except ValueError:
        # e.g. an unbalanced "[" in the host part
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    if (parsed.hostname or "").lower() not in GOODREADS_HOSTS:
        return None

    show_match = _USER_SHOW_PATH.match(parsed.path)
    if show_match:
        return NumericId(show_match.group(1))

    username_match = _USERNAME_PATH.match(parsed.path)
    if username_match:
        return UsernameId(username_match.group(1))

    return None


def extract_goodreads_user_id(raw: Optional[str]) -> Optional[CanonicalId]:
    """
    Parse raw input into a canonical identifier, or None if nothing usable is found.

    Rules, in priority order:
    1. Goodreads profile URL: /user/show/<digits>[-slug] or /<username>
    2. "<3+ digits>[-slug]"
    3. bare username (letter first, then letters/digits/underscore/hyphen)
    4. first standalone run of 3+ digits anywhere in the string
    """
    if not raw:
        return None
    trimmed = raw.strip()
    if not trimmed:
        return None

    from_url = _extract_from_goodreads_url(trimmed)
    if from_url is not None:
        return from_url

    id_slug = _ID_WITH_SLUG.match(trimmed)
    if id_slug:
        return NumericId(id_slug.group(1))

    if _USERNAME.match(trimmed):
        return UsernameId(trimmed)

    digits = _STANDALONE_DIGITS.search(trimmed)
    if digits:
        return NumericId(digits.group(1))

    return None


def is_valid_canonical_id(value: Optional[CanonicalId]) -> bool:
    if isinstance(value, NumericId):
        return bool(_NUMERIC_ID.match(value.digits))
    if isinstance(value, UsernameId):
        return bool(_USERNAME.match(value.handle))
    return False


def validate_user_id(raw: Optional[str]) -> CanonicalId:
    """
    Caller-facing validator: extract and check the result.

    Raises InvalidIdentifier unless the input yields a numeric id of at least
    three digits or a letter-first username.
    """
    canonical = extract_goodreads_user_id(raw)
    if not is_valid_canonical_id(canonical):
        raise InvalidIdentifier()
    return canonical

