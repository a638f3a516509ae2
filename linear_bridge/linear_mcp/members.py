from functools import partial
from typing import Optional

from pydantic import Field

from linear_bridge.linear_mcp.tool import ToolContext, ToolInput, ToolSpec
from linear_bridge.services.assembler import CollectionQuery, by_timestamp
from linear_bridge.services.entities import RemoteEntity
from linear_bridge.services.formatting import format_member_list

USER_SCAN_SIZE = 100


class ListMembersInput(ToolInput):
    team_id: Optional[str] = Field(default=None, description="Only members of this team")
    name_filter: Optional[str] = Field(default=None, description="Filter by name or display name")
    limit: int = Field(default=25, ge=1, le=100)


def member_text_fields(member: RemoteEntity) -> tuple[Optional[str], Optional[str], Optional[str]]:
    return member.get("name"), member.get("displayName"), None


async def list_members(ctx: ToolContext, args: ListMembersInput) -> str:
    linear = ctx.client()
    if args.team_id:
        primary = partial(linear.team_members, args.team_id)
    else:
        # Name filter is applied locally over a wider page
        primary = partial(linear.users, first=USER_SCAN_SIZE if args.name_filter else args.limit)

    members = await CollectionQuery(
        kind="member",
        primary=primary,
        name_filter=args.name_filter,
        fuzzy=False,
        text_fields=member_text_fields,
        sort_key=by_timestamp("lastSeen"),
        limit=args.limit,
        log=ctx.logger,
    ).run()

    ctx.logger.info(f"Found {len(members)} members matching criteria")
    return format_member_list(members)


LIST_MEMBERS = ToolSpec(
    name="list_members",
    description="List Linear workspace members, optionally scoped to a team or filtered by name.",
    input_model=ListMembersInput,
    handler=list_members,
    action="listing members",
)
