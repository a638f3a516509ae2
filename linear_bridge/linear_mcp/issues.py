"""Issue tools: list, search, get, create and update."""
from functools import partial
from typing import Any, Literal, Optional

from pydantic import Field

from linear_bridge.linear_mcp.tool import ToolContext, ToolInput, ToolSpec
from linear_bridge.services.assembler import CollectionQuery, by_timestamp
from linear_bridge.services.formatting import format_issue_detail, format_issue_list
from linear_bridge.services.relations import resolve
from linear_bridge.services.schemas import validate

ISSUE_RELATIONS = ("assignee", "state", "project", "team")
COMMENT_RELATIONS = ("comments.user",)


class ListIssuesInput(ToolInput):
    assigned_to_me: bool = Field(default=False, description="Only issues assigned to the API key's user")
    assignee: Optional[str] = Field(default=None, description="Assignee name (exact)")
    status: Optional[str] = Field(default=None, description="Workflow state name (exact)")
    project: Optional[str] = Field(default=None, description="Project name (exact)")
    team_id: Optional[str] = Field(default=None, description="Team ID")
    sort_by: Literal["createdAt", "updatedAt"] = "createdAt"
    sort_direction: Literal["ASC", "DESC"] = "DESC"
    limit: int = Field(default=25, ge=1, le=100)


class SearchIssuesInput(ToolInput):
    query: str = Field(min_length=1, description="Full-text search over issue titles and descriptions")
    include_comments: bool = False
    limit: int = Field(default=10, ge=1, le=50)


class GetIssueInput(ToolInput):
    issue_id: str = Field(description="Issue ID or identifier such as ENG-123")
    include_comments: bool = True


class CreateIssueInput(ToolInput):
    title: str = Field(min_length=1, description="The title of the issue to create")
    team_id: str = Field(description="The ID of the team where the issue will be created")
    description: Optional[str] = None
    priority: Optional[int] = Field(default=None, ge=0, le=4, description="0 none, 1 urgent ... 4 low")
    assignee_id: Optional[str] = None
    state_id: Optional[str] = None
    project_id: Optional[str] = None


class UpdateIssueInput(ToolInput):
    issue_id: str = Field(description="The ID of the issue to update")
    state_id: Optional[str] = Field(default=None, description="The ID of the state to move the issue to")
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = Field(default=None, ge=0, le=4)
    assignee_id: Optional[str] = None


def issue_filter(args: ListIssuesInput) -> Optional[dict[str, Any]]:
    """Native IssueFilter for every predicate Linear can evaluate server-side."""
    conditions: dict[str, Any] = {}
    if args.assignee and not args.assigned_to_me:
        conditions["assignee"] = {"name": {"eq": args.assignee}}
    if args.status:
        conditions["state"] = {"name": {"eq": args.status}}
    if args.project:
        conditions["project"] = {"name": {"eq": args.project}}
    if args.team_id:
        conditions["team"] = {"id": {"eq": args.team_id}}
    return conditions or None


def mutation_input(args: ToolInput, exclude: set[str]) -> dict[str, Any]:
    return args.model_dump(by_alias=True, exclude_none=True, exclude={"debug"} | exclude)


async def list_issues(ctx: ToolContext, args: ListIssuesInput) -> str:
    linear = ctx.client()
    conditions = issue_filter(args)
    ctx.logger.debug(f"Listing issues with filter {conditions} (assignedToMe={args.assigned_to_me})")

    fetch = linear.viewer_assigned_issues if args.assigned_to_me else linear.issues
    issues = await CollectionQuery(
        kind="issue",
        primary=partial(fetch, first=args.limit, filter=conditions, order_by=args.sort_by),
        limit=args.limit,
        sort_key=by_timestamp(args.sort_by, descending=args.sort_direction == "DESC"),
        relations=ISSUE_RELATIONS,
        log=ctx.logger,
    ).run()

    ctx.logger.info(f"Found {len(issues)} issues matching criteria")
    return format_issue_list(issues)


async def search_issues(ctx: ToolContext, args: SearchIssuesInput) -> str:
    linear = ctx.client()
    relations = ISSUE_RELATIONS + (COMMENT_RELATIONS if args.include_comments else ())
    issues = await CollectionQuery(
        kind="issue",
        primary=partial(linear.search_issues, args.query, first=args.limit),
        limit=args.limit,
        relations=relations,
        log=ctx.logger,
    ).run()

    ctx.logger.info(f"Search '{args.query}' returned {len(issues)} issues")
    return format_issue_list(issues, empty=f"No issues found for '{args.query}'.")


async def get_issue(ctx: ToolContext, args: GetIssueInput) -> str:
    linear = ctx.client()
    issue = await linear.issue(args.issue_id)
    relations = ISSUE_RELATIONS + (COMMENT_RELATIONS if args.include_comments else ())
    await resolve(issue, relations, log=ctx.logger)
    return format_issue_detail(validate("issue", issue))


async def create_issue(ctx: ToolContext, args: CreateIssueInput) -> str:
    linear = ctx.client()
    created = await linear.create_issue(mutation_input(args, exclude=set()))
    await resolve(created, ISSUE_RELATIONS, log=ctx.logger)
    issue = validate("issue", created)
    ctx.logger.info(f"Created issue {issue.identifier or issue.id}")
    return format_issue_detail(issue, heading="Created issue")


async def update_issue(ctx: ToolContext, args: UpdateIssueInput) -> str:
    changes = mutation_input(args, exclude={"issue_id"})
    if not changes:
        raise ValueError("No fields to update; pass at least one of stateId, title, description, priority, assigneeId")

    linear = ctx.client()
    updated = await linear.update_issue(args.issue_id, changes)
    await resolve(updated, ISSUE_RELATIONS, log=ctx.logger)
    issue = validate("issue", updated)
    ctx.logger.info(f"Updated issue {issue.identifier or issue.id}: {', '.join(sorted(changes))}")
    return format_issue_detail(issue, heading="Updated issue")


LIST_ISSUES = ToolSpec(
    name="list_issues",
    description=(
        "List Linear issues filtered by assignee, status, project or team. "
        "Use this to browse issues without a search query."
    ),
    input_model=ListIssuesInput,
    handler=list_issues,
    action="listing issues",
)

SEARCH_ISSUES = ToolSpec(
    name="search_issues",
    description="Full-text search over Linear issues, optionally including their comments.",
    input_model=SearchIssuesInput,
    handler=search_issues,
    action="searching issues",
)

GET_ISSUE = ToolSpec(
    name="get_issue",
    description="Get a single Linear issue with its status, assignee, project, team and comments.",
    input_model=GetIssueInput,
    handler=get_issue,
    action="retrieving issue",
)

CREATE_ISSUE = ToolSpec(
    name="create_issue",
    description="Create a Linear issue in a team, optionally setting priority, assignee, state and project.",
    input_model=CreateIssueInput,
    handler=create_issue,
    action="creating issue",
)

UPDATE_ISSUE = ToolSpec(
    name="update_issue",
    description="Update a Linear issue's state, title, description, priority or assignee.",
    input_model=UpdateIssueInput,
    handler=update_issue,
    action="updating issue",
)
