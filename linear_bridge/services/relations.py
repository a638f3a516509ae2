"""Resolution of deferred relation slots on remote entities.

Relation names are declared per call. A dotted name such as ``comments.user``
declares a dependency: ``user`` is resolved on every comment once the comment
list itself is available. Independent relations, and independent entities in
a batch, are started together and awaited together.

A failing relation never fails its entity: it is logged, left as ``None``,
and the remaining relations carry on.
"""
import asyncio
import logging
from typing import Any, Iterable, Optional, Sequence

from linear_bridge.services.entities import RELATIONS, RemoteEntity

logger = logging.getLogger(__name__)


def plan_relations(kind: str, relation_names: Iterable[str]) -> dict[str, list[str]]:
    """Group relation paths by their first segment, keeping declaration order."""
    plan: dict[str, list[str]] = {}
    for path in relation_names:
        head, _, rest = path.partition(".")
        if head not in RELATIONS[kind]:
            raise ValueError(f"{kind} has no relation named '{head}'")
        children = plan.setdefault(head, [])
        if rest:
            children.append(rest)
    return plan


async def resolve(
    entity: RemoteEntity,
    relation_names: Sequence[str],
    *,
    sequential: bool = False,
    log: Optional[logging.Logger] = None,
) -> RemoteEntity:
    """Populate ``entity.resolved`` for each requested relation.

    Args:
        entity: The entity whose slots are resolved in place.
        relation_names: Relations to populate, dotted for dependent ones.
        sequential: Await top-level relations one by one, in order, instead
            of concurrently.
        log: Logger for partial-failure warnings.

    Returns:
        The same entity, augmented.
    """
    log = log or logger
    plan = plan_relations(entity.kind, relation_names)

    if sequential:
        for name, children in plan.items():
            await _resolve_one(entity, name, children, sequential, log)
    else:
        await asyncio.gather(
            *(_resolve_one(entity, name, children, sequential, log) for name, children in plan.items())
        )
    return entity


async def resolve_all(
    entities: Sequence[RemoteEntity],
    relation_names: Sequence[str],
    *,
    sequential: bool = False,
    log: Optional[logging.Logger] = None,
) -> list[RemoteEntity]:
    """Resolve the same relations on a batch; every entity starts at once."""
    if not relation_names:
        return list(entities)
    await asyncio.gather(
        *(resolve(entity, relation_names, sequential=sequential, log=log) for entity in entities)
    )
    return list(entities)


async def _resolve_one(
    entity: RemoteEntity,
    name: str,
    children: list[str],
    sequential: bool,
    log: logging.Logger,
) -> None:
    slot = entity.slots.get(name)
    if slot is None:
        entity.resolved[name] = None
        return

    try:
        value = await slot()
    except Exception as e:
        log.warning(f"Failed to resolve {name} for {entity.kind} {entity.id}: {e}")
        entity.resolved[name] = None
        return

    entity.resolved[name] = value
    if children and value is not None:
        await resolve_all(_as_entities(value), children, sequential=sequential, log=log)


def _as_entities(value: Any) -> list[RemoteEntity]:
    if isinstance(value, RemoteEntity):
        return [value]
    return [item for item in value if isinstance(item, RemoteEntity)]
