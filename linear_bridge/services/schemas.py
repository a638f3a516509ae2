"""Canonical entity shapes and the validator that produces them.

Remote payloads are loosely typed: optional fields may be missing or
``null``, timestamps arrive as ISO strings or ``datetime`` objects. Every
entity handed to the formatting layer goes through :func:`validate` first.
"""
from datetime import date, datetime, timezone
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from linear_bridge.services.entities import RemoteEntity
from linear_bridge.services.errors import EntityValidationError


def to_iso(value: Any) -> Optional[str]:
    """Coerce a timestamp to a UTC ISO-8601 string with millisecond precision."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[float]:
    """Epoch seconds for a timestamp value, or None when absent or unparseable."""
    try:
        iso = to_iso(value)
    except ValueError:
        return None
    if iso is None:
        return None
    return datetime.fromisoformat(iso.replace("Z", "+00:00")).timestamp()


Timestamp = Annotated[Optional[str], BeforeValidator(to_iso)]

StateType = Literal["triage", "backlog", "unstarted", "started", "completed", "canceled"]


class EntityModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def dump(self) -> dict[str, Any]:
        """Wire-shaped dict: camelCase keys, absent fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Member(EntityModel):
    id: str
    name: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    active: Optional[bool] = None
    admin: Optional[bool] = None
    is_me: Optional[bool] = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    last_seen: Timestamp = None


class WorkflowState(EntityModel):
    id: str
    name: str
    type: StateType
    position: Optional[float] = None
    color: Optional[str] = None
    description: Optional[str] = None


class Comment(EntityModel):
    id: str
    body: str
    user: Optional[Member] = None
    created_at: Timestamp = None
    updated_at: Timestamp = None


class Team(EntityModel):
    id: str
    name: str
    key: str
    description: Optional[str] = None
    color: Optional[str] = None
    private: Optional[bool] = None
    cycles_enabled: Optional[bool] = None
    timezone: Optional[str] = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    members: Optional[list[Member]] = None
    projects: Optional[list["Project"]] = None
    states: Optional[list[WorkflowState]] = None


class Project(EntityModel):
    id: str
    name: str
    description: Optional[str] = None
    slug_id: Optional[str] = None
    state: Optional[str] = None
    progress: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    url: Optional[str] = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    start_date: Timestamp = None
    target_date: Timestamp = None
    completed_at: Timestamp = None
    canceled_at: Timestamp = None
    archived_at: Timestamp = None
    team: Optional[Team] = None
    lead: Optional[Member] = None
    members: Optional[list[Member]] = None
    issues: Optional[list["Issue"]] = None

    @property
    def status(self) -> str:
        if self.archived_at:
            return "Archived"
        if self.canceled_at:
            return "Canceled"
        if self.completed_at:
            return "Completed"
        if self.state:
            return self.state
        return "Active"


class Issue(EntityModel):
    id: str
    identifier: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = Field(default=None, ge=0, le=4)
    url: Optional[str] = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    assignee: Optional[Member] = None
    state: Optional[WorkflowState] = None
    project: Optional[Project] = None
    team: Optional[Team] = None
    comments: Optional[list[Comment]] = None


Team.model_rebuild()
Project.model_rebuild()
Issue.model_rebuild()

SCHEMAS: dict[str, type[EntityModel]] = {
    "issue": Issue,
    "project": Project,
    "team": Team,
    "member": Member,
    "comment": Comment,
    "workflow_state": WorkflowState,
}


def validate(kind: str, raw: Union[RemoteEntity, EntityModel, dict[str, Any]]) -> EntityModel:
    """Validate ``raw`` into the canonical model for ``kind``.

    Raises:
        EntityValidationError: carrying one ``"field.path: message"`` entry
            per violation.
    """
    model = SCHEMAS.get(kind)
    if model is None:
        raise ValueError(f"Unknown entity kind: {kind}")

    if isinstance(raw, RemoteEntity):
        raw = raw.payload()
    elif isinstance(raw, EntityModel):
        raw = raw.dump()

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        violations = [
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in e.errors()
        ]
        raise EntityValidationError(kind, violations) from e
