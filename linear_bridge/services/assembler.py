"""Orchestration of a collection listing: query, dedup, filter, sort, limit, resolve, validate."""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

from linear_bridge.services.entities import RemoteEntity
from linear_bridge.services.matching import filter_by_name
from linear_bridge.services.relations import resolve_all
from linear_bridge.services.schemas import EntityModel, parse_timestamp, validate

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[list[RemoteEntity]]]
Lookup = Callable[[], Awaitable[Optional[RemoteEntity]]]
SortKey = Callable[[RemoteEntity], Any]
TextFields = Callable[[RemoteEntity], tuple[Optional[str], Optional[str], Optional[str]]]

DIRECT, PRIMARY, SUPPLEMENTARY = "direct", "primary", "supplementary"


def display_name(entity: RemoteEntity) -> str:
    return (entity.get("name") or entity.get("title") or "").casefold()


def by_timestamp(field_name: str, descending: bool = True) -> SortKey:
    """Sort key on a timestamp field; entities without it go last, by name."""
    def key(entity: RemoteEntity) -> tuple[int, float, str]:
        moment = parse_timestamp(entity.get(field_name))
        if moment is None:
            return (1, 0.0, display_name(entity))
        return (0, -moment if descending else moment, display_name(entity))
    return key


most_recently_updated = by_timestamp("updatedAt")


def default_text_fields(entity: RemoteEntity) -> tuple[Optional[str], Optional[str], Optional[str]]:
    return entity.get("name"), entity.get("slugId"), entity.get("description")


@dataclass
class CollectionQuery:
    """One listing request against a single entity kind.

    ``primary`` must translate every predicate Linear can express natively.
    Whatever it cannot express (free-text name matching) is given as
    ``name_filter`` and applied after the fetch.
    """
    kind: str
    primary: Fetch
    limit: int
    direct: Optional[Lookup] = None
    supplementary: Sequence[Fetch] = ()
    name_filter: Optional[str] = None
    fuzzy: bool = True
    filtered_natively: bool = False
    text_fields: TextFields = default_text_fields
    sort_key: SortKey = most_recently_updated
    relations: Sequence[str] = ()
    log: logging.Logger = logger

    async def run(self) -> list[EntityModel]:
        if self.limit < 1:
            raise ValueError(f"limit must be a positive integer, got {self.limit}")

        log = self.log
        collected: dict[str, RemoteEntity] = {}
        sources: dict[str, str] = {}

        def collect(entities: Sequence[RemoteEntity], source: str) -> int:
            added = 0
            for entity in entities:
                if entity.id not in collected:
                    collected[entity.id] = entity
                    sources[entity.id] = source
                    added += 1
            return added

        exempt = {DIRECT, PRIMARY} if self.filtered_natively else {DIRECT}

        def surviving() -> list[RemoteEntity]:
            """Collected entities that pass the pending name filter."""
            entities = list(collected.values())
            if not self.name_filter:
                return entities
            pending = [entity for entity in entities if sources[entity.id] not in exempt]
            kept = {
                entity.id
                for entity in filter_by_name(pending, self.name_filter, self.text_fields, self.fuzzy)
            }
            return [entity for entity in entities if sources[entity.id] in exempt or entity.id in kept]

        if self.direct is not None:
            try:
                hit = await self.direct()
            except Exception as e:
                log.warning(f"Direct {self.kind} lookup failed: {e}")
            else:
                if hit is not None:
                    collect([hit], DIRECT)
                    log.debug(f"Found {self.kind} by ID: {hit.id}")

        primary = await self.primary()
        collect(primary, PRIMARY)
        log.debug(f"Primary {self.kind} query returned {len(primary)} results")

        for fetch in self.supplementary:
            if len(surviving()) >= self.limit:
                break
            try:
                extra = await fetch()
            except Exception as e:
                log.warning(f"Supplementary {self.kind} query failed: {e}")
                continue
            added = collect(extra, SUPPLEMENTARY)
            log.debug(f"Supplementary {self.kind} query added {added} results")

        log.debug(f"Total {self.kind} results before filtering: {len(collected)}")
        entities = surviving()
        if self.name_filter:
            log.debug(f"{self.kind} results after name filtering: {len(entities)}")

        entities.sort(key=self.sort_key)
        entities = entities[: self.limit]

        await resolve_all(entities, self.relations, log=log)
        return [validate(self.kind, entity) for entity in entities]
