from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlsplit

from aduib_naming.exceptions import InvalidTargetError

__all__ = ["ParsedTarget", "parse_uri"]

_SCHEME_SEPARATOR = "://"


@dataclass(frozen=True)
class ParsedTarget:
    """A name split as ``scheme://authority/path?query``."""

    scheme: str
    authority: str = ""
    path: str = ""
    query: dict[str, list[str]] = field(default_factory=dict)

    @property
    def endpoint(self) -> str:
        """The name to resolve: the path without its leading slash, or the authority."""
        endpoint = self.path.lstrip("/")
        return endpoint or self.authority

    def query_value(self, key: str, default: str | None = None) -> str | None:
        """Return the first value of a query parameter."""
        values = self.query.get(key)
        if not values:
            return default
        return values[0]

    def query_values(self, key: str) -> list[str]:
        """Return the non-empty values of a repeated query parameter."""
        return [value for value in self.query.get(key, []) if value]

    def __str__(self) -> str:
        return f"{self.scheme}://{self.authority}{self.path}"


def parse_uri(uri: str, default_scheme: str) -> ParsedTarget:
    """Parse a name, prefixing ``default_scheme`` when it has no ``scheme://``.

    Raises:
        InvalidTargetError: The URI cannot be parsed.
    """
    if _SCHEME_SEPARATOR not in uri:
        uri = f"{default_scheme}{_SCHEME_SEPARATOR}{uri}"
    try:
        parts = urlsplit(uri)
    except ValueError as exc:
        raise InvalidTargetError(message=f"invalid uri <{uri}>", cause=exc) from exc
    if not parts.scheme:
        raise InvalidTargetError(message=f"invalid uri <{uri}>: missing scheme")
    return ParsedTarget(
        scheme=parts.scheme,
        authority=parts.netloc,
        path=parts.path,
        query=parse_qs(parts.query, keep_blank_values=True),
    )
