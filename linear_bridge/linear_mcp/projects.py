"""Project tools: fuzzy listing and detail view."""
import logging
from functools import partial
from typing import Any, Literal, Optional

from pydantic import Field

from linear_bridge.linear_mcp.tool import ToolContext, ToolInput, ToolSpec
from linear_bridge.services.assembler import CollectionQuery
from linear_bridge.services.entities import RemoteEntity
from linear_bridge.services.errors import LinearAPIError
from linear_bridge.services.formatting import format_project_detail, format_project_list
from linear_bridge.services.linear_client import LinearClient
from linear_bridge.services.relations import resolve, resolve_all
from linear_bridge.services.schemas import validate

PROJECT_RELATIONS = ("team", "lead")
ISSUE_SCAN_SIZE = 30


class ListProjectsInput(ToolInput):
    team_id: Optional[str] = None
    name_filter: Optional[str] = Field(default=None, description="Name, slug or acronym to match")
    project_id: Optional[str] = Field(default=None, description="Direct lookup by project ID")
    state: Optional[Literal["active", "completed", "canceled", "all"]] = None
    include_archived: bool = False
    include_through_issues: bool = Field(
        default=True, description="Also discover projects referenced by recent issues"
    )
    fuzzy_match: bool = True
    limit: int = Field(default=25, ge=1, le=100)


class GetProjectInput(ToolInput):
    project_id: str = Field(description="The ID of the Linear project to retrieve")
    include_issues: bool = True
    include_members: bool = True
    include_comments: bool = Field(default=False, description="Include comments on the project's issues")
    limit: int = Field(default=10, ge=1, le=50, description="Maximum issues/members to include")


def project_filter(args: ListProjectsInput, native_name: bool) -> Optional[dict[str, Any]]:
    conditions: dict[str, Any] = {}
    if args.project_id:
        conditions["id"] = {"eq": args.project_id}
    if args.state and args.state != "all":
        conditions["state"] = {"eq": args.state}
    if args.team_id:
        conditions["accessibleTeams"] = {"some": {"id": {"eq": args.team_id}}}
    if native_name:
        conditions["name"] = {"containsIgnoreCase": args.name_filter}
    return conditions or None


async def projects_referenced_by_issues(
    linear: LinearClient,
    team_id: Optional[str],
    limit: int,
    log: logging.Logger,
) -> list[RemoteEntity]:
    """Projects reachable from a window of recent issues, possibly missed by the project query."""
    issue_conditions = {"team": {"id": {"eq": team_id}}} if team_id else None
    issues = await linear.issues(first=min(ISSUE_SCAN_SIZE, limit), filter=issue_conditions)
    log.debug(f"Scanning {len(issues)} issues for referenced projects")
    await resolve_all([issue for issue in issues if issue.has_slot("project")], ["project"], log=log)
    return [issue.resolved["project"] for issue in issues if issue.resolved.get("project") is not None]


async def list_projects(ctx: ToolContext, args: ListProjectsInput) -> str:
    linear = ctx.client()
    native_name = bool(args.name_filter) and not args.fuzzy_match

    supplementary = []
    if args.include_through_issues and not args.project_id:
        supplementary.append(
            partial(projects_referenced_by_issues, linear, args.team_id, args.limit, ctx.logger)
        )

    projects = await CollectionQuery(
        kind="project",
        direct=partial(linear.project, args.project_id) if args.project_id else None,
        primary=partial(
            linear.projects,
            first=min(100, args.limit * 2),
            filter=project_filter(args, native_name),
            include_archived=args.include_archived,
        ),
        supplementary=supplementary,
        name_filter=args.name_filter,
        fuzzy=args.fuzzy_match,
        filtered_natively=native_name,
        limit=args.limit,
        relations=PROJECT_RELATIONS,
        log=ctx.logger,
    ).run()

    ctx.logger.info(f"Found {len(projects)} projects matching criteria")
    return format_project_list(projects)


async def get_project(ctx: ToolContext, args: GetProjectInput) -> str:
    linear = ctx.client()
    project = await linear.project(args.project_id)
    ctx.logger.debug(f"Retrieved project: {project.get('name')}")

    relations = PROJECT_RELATIONS + (("members",) if args.include_members else ())
    await resolve(project, relations, log=ctx.logger)
    payload = project.payload()
    if payload.get("members"):
        payload["members"] = payload["members"][: args.limit]

    if args.include_issues:
        issue_relations = ["assignee", "state"] + (["comments.user"] if args.include_comments else [])
        try:
            issues = await CollectionQuery(
                kind="issue",
                primary=partial(
                    linear.issues,
                    first=args.limit,
                    filter={"project": {"id": {"eq": args.project_id}}},
                ),
                limit=args.limit,
                relations=issue_relations,
                log=ctx.logger,
            ).run()
        except LinearAPIError as e:
            ctx.logger.warning(f"Error fetching issues for project {args.project_id}: {e}")
        else:
            payload["issues"] = [issue.dump() for issue in issues]

    return format_project_detail(validate("project", payload))


LIST_PROJECTS = ToolSpec(
    name="list_projects",
    description=(
        "List Linear projects with optional filtering by team, state and name. Name matching is "
        "fuzzy by default (partial names, slugs, acronyms such as 'SOC'). Shows status, lead, "
        "progress and dates."
    ),
    input_model=ListProjectsInput,
    handler=list_projects,
    action="listing projects",
)

GET_PROJECT = ToolSpec(
    name="get_project",
    description=(
        "Get detailed information about a Linear project including team, lead, members, "
        "issues and optionally issue comments."
    ),
    input_model=GetProjectInput,
    handler=get_project,
    action="retrieving project",
)
