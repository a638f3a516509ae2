import asyncio

from pydantic import Field

from linear_bridge.linear_mcp.tool import ToolContext, ToolInput, ToolSpec
from linear_bridge.services.formatting import format_workflow_states
from linear_bridge.services.schemas import validate


class ListWorkflowStatesInput(ToolInput):
    team_id: str = Field(description="The ID of the team whose workflow states to list")


async def list_workflow_states(ctx: ToolContext, args: ListWorkflowStatesInput) -> str:
    linear = ctx.client()
    team, states = await asyncio.gather(
        linear.team(args.team_id), linear.team_states(args.team_id), return_exceptions=True
    )
    for result in (team, states):
        if isinstance(result, BaseException):
            raise result
    ctx.logger.debug(f"Team {team.get('name')} has {len(states)} workflow states")
    return format_workflow_states(
        validate("team", team),
        [validate("workflow_state", state) for state in states],
    )


LIST_WORKFLOW_STATES = ToolSpec(
    name="list_workflow_states",
    description="List the workflow states of a Linear team, grouped by type. Use the IDs with update_issue.",
    input_model=ListWorkflowStatesInput,
    handler=list_workflow_states,
    action="listing workflow states",
)
