"""Identity keys, scope labels and loose reference resolution.

Votes refer to their endpoints polymorphically, by a ``(type, id)`` pair of
strings. This module owns that mapping: building keys from entities, and
resolving keys or ``gid://`` global references back to mapped instances via
a registry of votable and voter classes.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import quote, unquote, urlparse

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from ballot.core.settings import settings
from ballot.errors import UnresolvableReference

if TYPE_CHECKING:
    from ballot.models.mixins import BallotEntity

logger = logging.getLogger(__name__)

GLOBAL_ID_SCHEME: Final[str] = "gid"
DEFAULT_SCOPE_LABEL: Final[str] = ""


class ScopeFilter(Enum):
    """Explicit request to span every scope in a listing query."""

    ALL = "all"


ALL_SCOPES: Final = ScopeFilter.ALL


def normalize_scope(scope: str | None) -> str | None:
    """Return the stored form of ``scope``; ``None`` and ``""`` are the default scope."""
    if scope is None or scope == "":
        return None
    return str(scope)


def cache_label(scope: str | None) -> str:
    """Return the summary cache key for ``scope``."""
    scope = normalize_scope(scope)
    return DEFAULT_SCOPE_LABEL if scope is None else scope


@dataclass(frozen=True)
class EntityKey:
    """Polymorphic identity of a voter or votable."""

    type: str
    id: str

    @classmethod
    def of(cls, entity: BallotEntity) -> EntityKey:
        """Build the key for a mapped votable or voter instance."""
        return cls(type=entity.ballot_type(), id=entity.ballot_id)

    def __str__(self) -> str:
        return f"{self.type}#{self.id}"


@dataclass(frozen=True)
class GlobalRef:
    """Opaque global reference of the form ``gid://<app>/<Type>/<id>``."""

    uri: str

    @classmethod
    def of(cls, entity: BallotEntity, app: str | None = None) -> GlobalRef:
        """Build a global reference for ``entity``."""
        app = app or settings.global_id_app
        return cls(f"{GLOBAL_ID_SCHEME}://{app}/{entity.ballot_type()}/{quote(entity.ballot_id, safe='')}")

    def to_key(self, app: str | None = None) -> EntityKey:
        """Parse the reference into an ``EntityKey``.

        Raises:
            UnresolvableReference: If the URI is malformed or names another app.
        """
        app = app or settings.global_id_app
        parsed = urlparse(self.uri)
        parts = [part for part in parsed.path.split("/") if part]
        if parsed.scheme != GLOBAL_ID_SCHEME or len(parts) != 2:
            raise UnresolvableReference("Malformed global reference", {"uri": self.uri})
        if parsed.netloc != app:
            raise UnresolvableReference(
                "Global reference belongs to another application",
                {"uri": self.uri, "app": app},
            )
        return EntityKey(type=unquote(parts[0]), id=unquote(parts[1]))

    def __str__(self) -> str:
        return self.uri


# An entity argument may be the mapped instance itself or a loose reference to it.
EntityRef = Any


def format_identifier(value: Any) -> str:
    """Render a primary key value as the opaque string stored in the ledger."""
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def parse_identifier(model_class: type, raw_id: str) -> Any:
    """Convert a stored identifier back into ``model_class``'s primary key type."""
    columns = inspect(model_class).primary_key
    if len(columns) != 1:
        raise UnresolvableReference(
            "Composite primary keys are not supported",
            {"model": model_class.__name__},
        )
    try:
        python_type = columns[0].type.python_type
    except NotImplementedError:
        return raw_id
    try:
        if python_type is bytes:
            return bytes.fromhex(raw_id)
        if python_type is uuid.UUID:
            return uuid.UUID(raw_id)
        return python_type(raw_id)
    except (TypeError, ValueError) as exc:
        raise UnresolvableReference(
            "Identifier does not match the primary key type",
            {"model": model_class.__name__, "id": raw_id},
        ) from exc


class BallotRegistry:
    """Maps ballot type names to the mapped classes that carry them."""

    def __init__(self) -> None:
        self._classes: dict[str, type] = {}

    def register(self, model_class: type) -> None:
        """Register ``model_class`` under its ballot type name."""
        type_name = model_class.ballot_type()
        existing = self._classes.get(type_name)
        if existing is not None and existing is not model_class:
            raise ValueError(
                f"Ballot type {type_name!r} already registered for {existing.__name__}"
            )
        self._classes[type_name] = model_class

    def get(self, type_name: str) -> type:
        """Return the class registered for ``type_name``."""
        try:
            return self._classes[type_name]
        except KeyError:
            raise UnresolvableReference(
                "Unknown ballot type", {"type": type_name}
            ) from None

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._classes

    def resolve(self, session: Session, ref: EntityRef) -> Any:
        """Resolve ``ref`` to a mapped instance.

        ``ref`` may be an instance, an ``EntityKey`` or a ``GlobalRef``.

        Raises:
            UnresolvableReference: If the reference cannot be turned into a row.
        """
        if isinstance(ref, GlobalRef):
            ref = ref.to_key()
        if not isinstance(ref, EntityKey):
            if ref is None:
                raise UnresolvableReference("No entity reference given")
            return ref

        model_class = self.get(ref.type)
        entity = session.get(model_class, parse_identifier(model_class, ref.id))
        if entity is None:
            logger.warning("Could not resolve ballot reference %s", ref)
            raise UnresolvableReference("Referenced entity does not exist", {"key": str(ref)})
        return entity

    def load_many(self, session: Session, keys: list[EntityKey]) -> dict[EntityKey, Any]:
        """Load the entities for ``keys`` with one query per ballot type."""
        by_type: dict[str, list[str]] = {}
        for key in keys:
            by_type.setdefault(key.type, []).append(key.id)

        loaded: dict[EntityKey, Any] = {}
        for type_name, raw_ids in by_type.items():
            model_class = self.get(type_name)
            pk_column = inspect(model_class).primary_key[0]
            ids = [parse_identifier(model_class, raw_id) for raw_id in set(raw_ids)]
            for entity in session.query(model_class).filter(pk_column.in_(ids)):
                loaded[EntityKey.of(entity)] = entity
        return loaded


default_registry = BallotRegistry()

__all__ = [
    "ALL_SCOPES",
    "BallotRegistry",
    "DEFAULT_SCOPE_LABEL",
    "EntityKey",
    "EntityRef",
    "GlobalRef",
    "ScopeFilter",
    "cache_label",
    "default_registry",
    "format_identifier",
    "normalize_scope",
    "parse_identifier",
]
