"""Entity identifier namespacing.

Identifiers are stored as ``<kind>:<opaque-id>`` (``platform:abc123``) and
returned to API clients without the prefix. The helpers here are pure and
total: any string, including the empty string, is valid input.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum


class EntityKind(str, Enum):
    ACCOUNT = "account"
    USER = "user"
    TEAM = "team"
    PLATFORM = "platform"
    PLATFORM_SOURCE = "platform-source"
    CONNECTION = "connection"
    FILE = "file"
    ACTIVITY = "activity"
    JOB = "job"
    CLIENT = "client"

    @property
    def prefix(self) -> str:
        return f"{self.value}:"


def ensure_prefix(value: str, prefix: str) -> str:
    """Return ``value`` with ``prefix`` prepended unless it is already there."""
    if value.startswith(prefix):
        return value
    return prefix + value


def strip_prefix(value: str, prefix: str) -> str:
    """Return ``value`` without a leading ``prefix``; unchanged otherwise."""
    if value.startswith(prefix):
        return value[len(prefix):]
    return value


def canonical(kind: EntityKind, raw: str) -> str:
    return ensure_prefix(raw, kind.prefix)


def public(kind: EntityKind, raw: str) -> str:
    return strip_prefix(raw, kind.prefix)


@dataclass(frozen=True)
class EntityId:
    """An identifier that knows which entity kind it names.

    ``value`` never carries the prefix, so ``EntityId.parse`` accepts the
    canonical and the public form alike.
    """

    kind: EntityKind
    value: str

    @classmethod
    def parse(cls, kind: EntityKind, raw: str) -> "EntityId":
        return cls(kind=kind, value=strip_prefix(raw, kind.prefix))

    @property
    def key(self) -> str:
        """Canonical form used in storage keys."""
        return self.kind.prefix + self.value

    @property
    def public(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


def public_view(
    item: Mapping,
    fields: Mapping[str, EntityKind],
    exclude: Iterable[str] = (),
) -> dict:
    """Copy a stored item for an API response.

    Identifier fields listed in ``fields`` lose their prefix and attributes
    named in ``exclude`` are dropped. Non-string identifier values are left
    as they are.
    """
    skipped = set(exclude)
    view = {k: v for k, v in item.items() if k not in skipped}
    for field, kind in fields.items():
        value = view.get(field)
        if isinstance(value, str):
            view[field] = public(kind, value)
    return view
