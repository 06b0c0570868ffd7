"""
The generic business entity persisted by the DAO.
"""

from typing import Any


def _field(name: str) -> property:
    def getter(self: "Record") -> Any:
        return self.get(name)

    def setter(self: "Record", value: Any) -> None:
        self[name] = value

    return property(getter, setter, doc=f"The ``{name}`` field.")


class Record(dict):
    """
    A self-describing entity: a mapping of field names to values.

    Values may be strings, numbers, booleans, nested mappings, or lists of
    those. The core fields are also reachable as attributes::

        note = Record(type="note", text="hello")
        note.id = "n1"
        note["id"]   # "n1"
    """

    id = _field("id")
    type = _field("type")
    appid = _field("appid")
    timestamp = _field("timestamp")
    updated = _field("updated")
    name = _field("name")
    parentid = _field("parentid")
    creatorid = _field("creatorid")

    def __repr__(self) -> str:
        return f"Record({dict.__repr__(self)})"
