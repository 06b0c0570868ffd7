"""
Record schema descriptors.

A schema maps field names to a ``FieldSpec`` holding a type tag and a set
of filter tags. The mapper consults it to decide which fields go into a
stored document; e.g. fields tagged ``locked`` are left out of updates so
an update can never overwrite them.

Fields that aren't described by the schema are user properties: they are
stored as-is and carry no tags.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal

from ..constants import LOCKED

TypeTag = Literal["string", "integer", "boolean", "list", "mapping", "any"]


@dataclass(frozen=True)
class FieldSpec:
    """Type tag and filter tags for one record field."""

    type_tag: TypeTag = "any"
    tags: frozenset[str] = field(default_factory=frozenset)

    def has_tag(self, tag: str | None) -> bool:
        return tag is not None and tag in self.tags


_UNTAGGED = FieldSpec()


class RecordSchema:
    """
    Explicit description of the known record fields.

    Example:
        schema = DEFAULT_SCHEMA.extend(
            {"owner": FieldSpec("string", frozenset({LOCKED}))}
        )
        schema.is_tagged("owner", LOCKED)   # True
        schema.is_tagged("title", LOCKED)   # False, unknown fields are untagged
    """

    def __init__(self, fields: Mapping[str, FieldSpec]) -> None:
        self._fields = MappingProxyType(dict(fields))

    @property
    def fields(self) -> Mapping[str, FieldSpec]:
        return self._fields

    def spec_for(self, name: str) -> FieldSpec:
        return self._fields.get(name, _UNTAGGED)

    def is_tagged(self, name: str, tag: str | None) -> bool:
        return self.spec_for(name).has_tag(tag)

    def tagged(self, tag: str) -> frozenset[str]:
        """Names of all fields carrying ``tag``."""
        return frozenset(name for name, spec in self._fields.items() if spec.has_tag(tag))

    def extend(self, fields: Mapping[str, FieldSpec]) -> "RecordSchema":
        """Return a new schema with ``fields`` added (or overriding existing ones)."""
        return RecordSchema({**self._fields, **fields})

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __repr__(self) -> str:
        return f"RecordSchema({sorted(self._fields)})"


def _spec(type_tag: TypeTag, tags: Iterable[str] = ()) -> FieldSpec:
    return FieldSpec(type_tag, frozenset(tags))


DEFAULT_SCHEMA = RecordSchema(
    {
        "id": _spec("string", [LOCKED]),
        "type": _spec("string", [LOCKED]),
        "appid": _spec("string", [LOCKED]),
        "timestamp": _spec("integer", [LOCKED]),
        "parentid": _spec("string", [LOCKED]),
        "creatorid": _spec("string", [LOCKED]),
        "updated": _spec("integer"),
        "name": _spec("string"),
        "tags": _spec("list"),
        "votes": _spec("integer"),
        "version": _spec("integer"),
        "stored": _spec("boolean"),
        "indexed": _spec("boolean"),
        "cached": _spec("boolean"),
    }
)
"""Core system fields shared by every record type."""
