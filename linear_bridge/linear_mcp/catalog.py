from linear_bridge.linear_mcp.comments import ADD_COMMENT
from linear_bridge.linear_mcp.issues import CREATE_ISSUE, GET_ISSUE, LIST_ISSUES, SEARCH_ISSUES, UPDATE_ISSUE
from linear_bridge.linear_mcp.members import LIST_MEMBERS
from linear_bridge.linear_mcp.projects import GET_PROJECT, LIST_PROJECTS
from linear_bridge.linear_mcp.teams import LIST_TEAMS
from linear_bridge.linear_mcp.tool import Tool, ToolContext, ToolSpec
from linear_bridge.linear_mcp.workflow_states import LIST_WORKFLOW_STATES

TOOL_SPECS: tuple[ToolSpec, ...] = (
    LIST_ISSUES,
    SEARCH_ISSUES,
    GET_ISSUE,
    CREATE_ISSUE,
    UPDATE_ISSUE,
    ADD_COMMENT,
    LIST_PROJECTS,
    GET_PROJECT,
    LIST_TEAMS,
    LIST_MEMBERS,
    LIST_WORKFLOW_STATES,
)


def build_tools(context: ToolContext) -> list[Tool]:
    """Create every catalog tool and bind it to ``context``."""
    return [spec.create().bind(context) for spec in TOOL_SPECS]
