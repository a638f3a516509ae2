from functools import partial
from typing import Optional

from pydantic import Field

from linear_bridge.linear_mcp.tool import ToolContext, ToolInput, ToolSpec
from linear_bridge.services.assembler import CollectionQuery
from linear_bridge.services.entities import RemoteEntity
from linear_bridge.services.formatting import format_team_list

TEAM_SCAN_SIZE = 100


class ListTeamsInput(ToolInput):
    name_filter: Optional[str] = Field(default=None, description="Filter teams by name, key or description")
    include_members: bool = True
    include_projects: bool = True
    limit: int = Field(default=25, ge=1, le=100)


def team_text_fields(team: RemoteEntity) -> tuple[Optional[str], Optional[str], Optional[str]]:
    return team.get("name"), team.get("key"), team.get("description")


async def list_teams(ctx: ToolContext, args: ListTeamsInput) -> str:
    linear = ctx.client()
    relations = []
    if args.include_members:
        relations.append("members")
    if args.include_projects:
        relations.append("projects")

    teams = await CollectionQuery(
        kind="team",
        primary=partial(linear.teams, first=TEAM_SCAN_SIZE),
        name_filter=args.name_filter,
        fuzzy=False,
        text_fields=team_text_fields,
        limit=args.limit,
        relations=relations,
        log=ctx.logger,
    ).run()

    ctx.logger.info(f"Found {len(teams)} teams matching criteria")
    return format_team_list(teams)


LIST_TEAMS = ToolSpec(
    name="list_teams",
    description="List Linear teams with their members and projects, optionally filtered by name or key.",
    input_model=ListTeamsInput,
    handler=list_teams,
    action="listing teams",
)
