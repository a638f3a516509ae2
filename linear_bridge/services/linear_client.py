import httpx
import logging
from functools import partial
from typing import Any, Optional

from linear_bridge.services.entities import RemoteEntity
from linear_bridge.services.errors import (
    LinearAPIError,
    LinearAuthError,
    LinearGraphQLError,
    LinearNotFoundError,
)

logger = logging.getLogger(__name__)

# Constants
DEFAULT_API_URL = "https://api.linear.app/graphql"
DEFAULT_TIMEOUT = 30.0
RELATION_PAGE_SIZE = 50

ISSUE_FIELDS = """
    id identifier title description priority url createdAt updatedAt
    assignee { id } state { id } project { id } team { id }
"""

PROJECT_FIELDS = """
    id name description slugId state progress url
    createdAt updatedAt startDate targetDate completedAt canceledAt archivedAt
    lead { id } teams(first: 1) { nodes { id } }
"""

TEAM_FIELDS = "id name key description color private cyclesEnabled timezone createdAt updatedAt"

USER_FIELDS = "id name displayName email active admin isMe createdAt updatedAt lastSeen"

STATE_FIELDS = "id name color description type position"

COMMENT_FIELDS = "id body createdAt updatedAt user { id }"


class LinearClient:
    """Linear GraphQL client returning entities with deferred relation slots."""
    def __init__(self, api_key: Optional[str], api_url: Optional[str] = DEFAULT_API_URL):
        if not api_key or not api_url:
            raise ValueError("Linear api_key and api_url are required")

        self.api_url = api_url.rstrip('/')
        self.api_key = api_key
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with connection pooling."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=DEFAULT_TIMEOUT,
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=20)
            )
        return self._http_client

    async def close(self):
        """Close HTTP client and cleanup resources."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            logger.info("LinearClient HTTP client closed")

    async def execute(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Run a GraphQL operation and return its ``data`` object."""
        client = await self._get_http_client()
        headers = {
            "Authorization": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = await client.post(
                self.api_url,
                headers=headers,
                json={"query": query, "variables": variables or {}},
            )
            response.raise_for_status()
            result = response.json()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"HTTP error from Linear API: {status_code}")

            if status_code in (401, 403):
                raise LinearAuthError(
                    "Authentication failed. Check LINEAR_API_KEY.", status_code=status_code
                )
            errors = _graphql_errors(e.response)
            if errors:
                raise LinearGraphQLError(
                    f"GraphQL returned errors: {errors[0].get('message', 'unknown error')}",
                    errors,
                    status_code=status_code,
                )
            raise LinearAPIError(f"Linear API request failed: HTTP {status_code}", status_code=status_code)

        except httpx.RequestError as e:
            logger.error(f"Network error calling Linear API: {e}")
            raise LinearAPIError(f"Network error calling Linear API: {e}")

        except ValueError as e:
            logger.error(f"Malformed response from Linear API: {e}")
            raise LinearAPIError(f"Malformed response from Linear API: {e}")

        if not isinstance(result, dict):
            raise LinearAPIError("Malformed response from Linear API: expected a JSON object")

        errors = result.get("errors")
        if errors:
            logger.warning(f"Linear GraphQL errors: {errors}")
            raise LinearGraphQLError(
                f"GraphQL returned errors: {errors[0].get('message', 'unknown error')}", errors
            )

        data = result.get("data")
        if data is None:
            raise LinearAPIError("GraphQL response missing data")
        return data

    # Single-entity lookups

    async def issue(self, issue_id: str) -> RemoteEntity:
        query = f"query Issue($id: String!) {{ issue(id: $id) {{ {ISSUE_FIELDS} }} }}"
        data = await self.execute(query, {"id": issue_id})
        return self._issue(_required(data.get("issue"), "Issue", issue_id))

    async def project(self, project_id: str) -> RemoteEntity:
        query = f"query Project($id: String!) {{ project(id: $id) {{ {PROJECT_FIELDS} }} }}"
        data = await self.execute(query, {"id": project_id})
        return self._project(_required(data.get("project"), "Project", project_id))

    async def team(self, team_id: str) -> RemoteEntity:
        query = f"query Team($id: String!) {{ team(id: $id) {{ {TEAM_FIELDS} }} }}"
        data = await self.execute(query, {"id": team_id})
        return self._team(_required(data.get("team"), "Team", team_id))

    async def user(self, user_id: str) -> RemoteEntity:
        query = f"query User($id: String!) {{ user(id: $id) {{ {USER_FIELDS} }} }}"
        data = await self.execute(query, {"id": user_id})
        return self._member(_required(data.get("user"), "User", user_id))

    async def workflow_state(self, state_id: str) -> RemoteEntity:
        query = f"query WorkflowState($id: String!) {{ workflowState(id: $id) {{ {STATE_FIELDS} }} }}"
        data = await self.execute(query, {"id": state_id})
        return self._state(_required(data.get("workflowState"), "Workflow state", state_id))

    async def viewer(self) -> RemoteEntity:
        data = await self.execute(f"query Viewer {{ viewer {{ {USER_FIELDS} }} }}")
        return self._member(_required(data.get("viewer"), "Viewer", "me"))

    # Collections

    async def issues(
        self,
        first: int,
        filter: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> list[RemoteEntity]:
        query = f"""query Issues($first: Int!, $filter: IssueFilter, $orderBy: PaginationOrderBy) {{
            issues(first: $first, filter: $filter, orderBy: $orderBy) {{ nodes {{ {ISSUE_FIELDS} }} }}
        }}"""
        logger.debug(f"Querying issues (first={first}, filter={filter}, orderBy={order_by})")
        data = await self.execute(query, {"first": first, "filter": filter, "orderBy": order_by})
        return [self._issue(node) for node in _nodes(data.get("issues"))]

    async def viewer_assigned_issues(
        self,
        first: int,
        filter: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> list[RemoteEntity]:
        query = f"""query AssignedIssues($first: Int!, $filter: IssueFilter, $orderBy: PaginationOrderBy) {{
            viewer {{ assignedIssues(first: $first, filter: $filter, orderBy: $orderBy) {{ nodes {{ {ISSUE_FIELDS} }} }} }}
        }}"""
        logger.debug(f"Querying viewer assigned issues (first={first}, filter={filter})")
        data = await self.execute(query, {"first": first, "filter": filter, "orderBy": order_by})
        viewer = data.get("viewer") or {}
        return [self._issue(node) for node in _nodes(viewer.get("assignedIssues"))]

    async def search_issues(self, term: str, first: int) -> list[RemoteEntity]:
        query = f"""query SearchIssues($term: String!, $first: Int!) {{
            searchIssues(term: $term, first: $first) {{ nodes {{ {ISSUE_FIELDS} }} }}
        }}"""
        data = await self.execute(query, {"term": term, "first": first})
        return [self._issue(node) for node in _nodes(data.get("searchIssues"))]

    async def projects(
        self,
        first: int,
        filter: Optional[dict[str, Any]] = None,
        include_archived: bool = False,
    ) -> list[RemoteEntity]:
        query = f"""query Projects($first: Int!, $filter: ProjectFilter, $includeArchived: Boolean) {{
            projects(first: $first, filter: $filter, includeArchived: $includeArchived) {{ nodes {{ {PROJECT_FIELDS} }} }}
        }}"""
        logger.debug(f"Querying projects (first={first}, filter={filter}, includeArchived={include_archived})")
        data = await self.execute(
            query, {"first": first, "filter": filter, "includeArchived": include_archived}
        )
        return [self._project(node) for node in _nodes(data.get("projects"))]

    async def teams(self, first: int) -> list[RemoteEntity]:
        query = f"query Teams($first: Int!) {{ teams(first: $first) {{ nodes {{ {TEAM_FIELDS} }} }} }}"
        data = await self.execute(query, {"first": first})
        return [self._team(node) for node in _nodes(data.get("teams"))]

    async def users(self, first: int) -> list[RemoteEntity]:
        query = f"query Users($first: Int!) {{ users(first: $first) {{ nodes {{ {USER_FIELDS} }} }} }}"
        data = await self.execute(query, {"first": first})
        return [self._member(node) for node in _nodes(data.get("users"))]

    async def team_members(self, team_id: str, first: int = RELATION_PAGE_SIZE) -> list[RemoteEntity]:
        query = f"""query TeamMembers($id: String!, $first: Int!) {{
            team(id: $id) {{ members(first: $first) {{ nodes {{ {USER_FIELDS} }} }} }}
        }}"""
        data = await self.execute(query, {"id": team_id, "first": first})
        team = _required(data.get("team"), "Team", team_id)
        return [self._member(node) for node in _nodes(team.get("members"))]

    async def team_projects(self, team_id: str, first: int = RELATION_PAGE_SIZE) -> list[RemoteEntity]:
        query = f"""query TeamProjects($id: String!, $first: Int!) {{
            team(id: $id) {{ projects(first: $first) {{ nodes {{ {PROJECT_FIELDS} }} }} }}
        }}"""
        data = await self.execute(query, {"id": team_id, "first": first})
        team = _required(data.get("team"), "Team", team_id)
        return [self._project(node) for node in _nodes(team.get("projects"))]

    async def team_states(self, team_id: str) -> list[RemoteEntity]:
        query = f"""query TeamStates($id: String!) {{
            team(id: $id) {{ states {{ nodes {{ {STATE_FIELDS} }} }} }}
        }}"""
        data = await self.execute(query, {"id": team_id})
        team = _required(data.get("team"), "Team", team_id)
        return [self._state(node) for node in _nodes(team.get("states"))]

    async def project_members(self, project_id: str, first: int = RELATION_PAGE_SIZE) -> list[RemoteEntity]:
        query = f"""query ProjectMembers($id: String!, $first: Int!) {{
            project(id: $id) {{ members(first: $first) {{ nodes {{ {USER_FIELDS} }} }} }}
        }}"""
        data = await self.execute(query, {"id": project_id, "first": first})
        project = _required(data.get("project"), "Project", project_id)
        return [self._member(node) for node in _nodes(project.get("members"))]

    async def issue_comments(self, issue_id: str, first: int = RELATION_PAGE_SIZE) -> list[RemoteEntity]:
        query = f"""query IssueComments($id: String!, $first: Int!) {{
            issue(id: $id) {{ comments(first: $first) {{ nodes {{ {COMMENT_FIELDS} }} }} }}
        }}"""
        data = await self.execute(query, {"id": issue_id, "first": first})
        issue = _required(data.get("issue"), "Issue", issue_id)
        return [self._comment(node) for node in _nodes(issue.get("comments"))]

    # Mutations

    async def create_issue(self, issue_input: dict[str, Any]) -> RemoteEntity:
        query = f"""mutation IssueCreate($input: IssueCreateInput!) {{
            issueCreate(input: $input) {{ success issue {{ {ISSUE_FIELDS} }} }}
        }}"""
        logger.info(f"Creating Linear issue in team {issue_input.get('teamId')}")
        data = await self.execute(query, {"input": issue_input})
        payload = _mutation_payload(data, "issueCreate", "issue")
        return self._issue(payload)

    async def update_issue(self, issue_id: str, issue_input: dict[str, Any]) -> RemoteEntity:
        query = f"""mutation IssueUpdate($id: String!, $input: IssueUpdateInput!) {{
            issueUpdate(id: $id, input: $input) {{ success issue {{ {ISSUE_FIELDS} }} }}
        }}"""
        logger.info(f"Updating Linear issue {issue_id} ({', '.join(sorted(issue_input))})")
        data = await self.execute(query, {"id": issue_id, "input": issue_input})
        payload = _mutation_payload(data, "issueUpdate", "issue")
        return self._issue(payload)

    async def create_comment(self, issue_id: str, body: str) -> RemoteEntity:
        query = f"""mutation CommentCreate($input: CommentCreateInput!) {{
            commentCreate(input: $input) {{ success comment {{ {COMMENT_FIELDS} }} }}
        }}"""
        logger.info(f"Adding comment to Linear issue {issue_id}")
        data = await self.execute(query, {"input": {"issueId": issue_id, "body": body}})
        payload = _mutation_payload(data, "commentCreate", "comment")
        return self._comment(payload)

    # Node -> entity conversion. Each reference becomes a deferred slot.

    def _issue(self, node: dict[str, Any]) -> RemoteEntity:
        data = dict(node)
        slots = {}
        for name, fetch in (
            ("assignee", self.user),
            ("state", self.workflow_state),
            ("project", self.project),
            ("team", self.team),
        ):
            ref = _ref_id(data.pop(name, None))
            if ref:
                slots[name] = partial(fetch, ref)
        slots["comments"] = partial(self.issue_comments, data.get("id"))
        return RemoteEntity("issue", data, slots)

    def _project(self, node: dict[str, Any]) -> RemoteEntity:
        data = dict(node)
        slots = {"members": partial(self.project_members, data.get("id"))}
        lead_id = _ref_id(data.pop("lead", None))
        if lead_id:
            slots["lead"] = partial(self.user, lead_id)
        teams = _nodes(data.pop("teams", None))
        if teams and teams[0].get("id"):
            slots["team"] = partial(self.team, teams[0]["id"])
        return RemoteEntity("project", data, slots)

    def _team(self, node: dict[str, Any]) -> RemoteEntity:
        team_id = node.get("id")
        return RemoteEntity(
            "team",
            dict(node),
            {
                "members": partial(self.team_members, team_id),
                "projects": partial(self.team_projects, team_id),
                "states": partial(self.team_states, team_id),
            },
        )

    def _member(self, node: dict[str, Any]) -> RemoteEntity:
        return RemoteEntity("member", dict(node))

    def _state(self, node: dict[str, Any]) -> RemoteEntity:
        return RemoteEntity("workflow_state", dict(node))

    def _comment(self, node: dict[str, Any]) -> RemoteEntity:
        data = dict(node)
        slots = {}
        user_id = _ref_id(data.pop("user", None))
        if user_id:
            slots["user"] = partial(self.user, user_id)
        return RemoteEntity("comment", data, slots)


def _graphql_errors(response: httpx.Response) -> list[dict[str, Any]]:
    try:
        body = response.json()
    except ValueError:
        return []
    if isinstance(body, dict) and isinstance(body.get("errors"), list):
        return body["errors"]
    return []


def _nodes(connection: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
    if not connection:
        return []
    return [node for node in connection.get("nodes") or [] if node]


def _ref_id(ref: Any) -> Optional[str]:
    if isinstance(ref, dict):
        return ref.get("id")
    return None


def _required(node: Optional[dict[str, Any]], label: str, entity_id: str) -> dict[str, Any]:
    if not node:
        logger.warning(f"{label} not found: {entity_id}")
        raise LinearNotFoundError(f"{label} with ID {entity_id} not found")
    return node


def _mutation_payload(data: dict[str, Any], operation: str, field: str) -> dict[str, Any]:
    result = data.get(operation) or {}
    if not result.get("success"):
        raise LinearAPIError(f"Linear {operation} did not succeed")
    node = result.get(field)
    if not node:
        raise LinearAPIError(f"Linear {operation} returned no {field}")
    return node
