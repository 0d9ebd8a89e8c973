"""Data models for the JIRA 4 plugin.

JIRA's SOAP API refers to priorities, issue types, statuses and
resolutions by id, while users and the host work with names. The
lookup table here joins the two, built fresh from the server for each
call.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

# Namespace of the JIRA SOAP bean types (RemoteIssue, RemoteComment, ...)
BEANS_NAMESPACE = "http://beans.soap.rpc.jira.atlassian.com"

UNKNOWN_STATUS = "UNKNOWN"


@dataclass
class NamedLookup:
    """Bidirectional name/id table for remote named entities.

    The first entity wins when names or ids repeat.
    """

    ids_by_name: dict[str, str] = field(default_factory=dict)
    names_by_id: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_entities(cls, entities: Iterable[Any] | None) -> NamedLookup:
        """Create from remote objects with ``id`` and ``name`` attributes."""
        lookup = cls()
        for entity in entities or []:
            lookup.ids_by_name.setdefault(entity.name, entity.id)
            lookup.names_by_id.setdefault(entity.id, entity.name)
        return lookup

    def id_for(self, name: str | None) -> str | None:
        """Return the id of the named entity, or None."""
        if name is None:
            return None
        return self.ids_by_name.get(name)

    def name_for(self, entity_id: str | None) -> str | None:
        """Return the name of the entity with this id, or None."""
        if entity_id is None:
            return None
        return self.names_by_id.get(entity_id)


def entity_names(entities: Iterable[Any] | None) -> list[str]:
    """Return the names of remote named entities, in server order."""
    return [entity.name for entity in entities or []]
