"""Validation of target URLs and custom aliases."""

import ipaddress
import re
from urllib.parse import urlsplit

from linkhop.core.errors import InvalidAliasError, InvalidTargetError

ALLOWED_SCHEMES = frozenset({"http", "https"})

# Any whitespace or control character inside the URL
FORBIDDEN_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")
HOST_LABEL = re.compile(r"(?!-)[A-Za-z0-9-]{1,63}(?<!-)")

ALIAS_MIN_LENGTH = 3
ALIAS_MAX_LENGTH = 20
ALIAS_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def _is_valid_host(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
        return True
    except ValueError:
        pass
    try:
        ascii_host = hostname.encode("idna").decode("ascii")
    except UnicodeError:
        return False
    labels = ascii_host.rstrip(".").split(".")
    return len(ascii_host) <= 253 and all(HOST_LABEL.fullmatch(label) for label in labels)


def validate_target(url: str) -> None:
    """Check that ``url`` is an absolute http(s) URL with a well-formed host.

    Surrounding whitespace is ignored; whitespace or control characters
    anywhere else are rejected, since the stored URL is echoed verbatim in
    the redirect ``Location`` header.
    """
    if not url or not url.strip():
        raise InvalidTargetError("URL cannot be empty")

    url = url.strip()
    if FORBIDDEN_CHARS.search(url):
        raise InvalidTargetError("URL must not contain whitespace or control characters")

    try:
        parsed = urlsplit(url)
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidTargetError("invalid URL format") from e

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise InvalidTargetError("URL must use http or https scheme")
    if not hostname or not _is_valid_host(hostname):
        raise InvalidTargetError("URL must have a valid host")


def validate_alias(alias: str) -> None:
    """Check custom alias length and character set."""
    if not ALIAS_MIN_LENGTH <= len(alias) <= ALIAS_MAX_LENGTH:
        raise InvalidAliasError(
            f"must be {ALIAS_MIN_LENGTH}-{ALIAS_MAX_LENGTH} characters"
        )
    if not ALIAS_PATTERN.fullmatch(alias):
        raise InvalidAliasError(
            "can only contain letters, numbers, hyphens and underscores"
        )
