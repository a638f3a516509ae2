"""Remote entities whose relation fields are fetched lazily.

Linear returns nested objects as references (``assignee { id }``). The client
turns each reference into a *slot*: a zero-argument coroutine factory that
performs the second remote call when awaited. Slots are resolved by
``linear_bridge.services.relations`` and their values end up in ``resolved``.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from linear_bridge.services.errors import EntityValidationError

Deferred = Callable[[], Awaitable[Any]]

# Relation slots each entity kind may carry.
RELATIONS: dict[str, tuple[str, ...]] = {
    "issue": ("assignee", "state", "project", "team", "comments"),
    "project": ("team", "lead", "members"),
    "team": ("members", "projects", "states"),
    "comment": ("user",),
    "member": (),
    "workflow_state": (),
}


@dataclass
class RemoteEntity:
    kind: str
    data: dict[str, Any]
    slots: dict[str, Deferred] = field(default_factory=dict)
    resolved: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.kind not in RELATIONS:
            raise ValueError(f"Unknown entity kind: {self.kind}")
        undeclared = set(self.slots) - set(RELATIONS[self.kind])
        if undeclared:
            raise ValueError(f"{self.kind} has no relation(s): {', '.join(sorted(undeclared))}")

    @property
    def id(self) -> str:
        entity_id = self.data.get("id")
        if not entity_id:
            raise EntityValidationError(self.kind, ["id: Field required"])
        return entity_id

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def has_slot(self, name: str) -> bool:
        return name in self.slots

    def payload(self) -> dict[str, Any]:
        """Scalar data merged with every resolved relation, recursively."""
        merged = dict(self.data)
        for name, value in self.resolved.items():
            merged[name] = _payload_of(value)
        return merged


def _payload_of(value: Any) -> Any:
    if isinstance(value, RemoteEntity):
        return value.payload()
    if isinstance(value, (list, tuple)):
        return [_payload_of(item) for item in value]
    return value
