"""
Tests for the team, member and workflow state tools
"""

import pytest

from linear_bridge.linear_mcp.members import LIST_MEMBERS
from linear_bridge.linear_mcp.teams import LIST_TEAMS
from linear_bridge.linear_mcp.workflow_states import LIST_WORKFLOW_STATES
from linear_bridge.services.errors import LinearAPIError, LinearNotFoundError

from .conftest import deferred, entity, failing, member, project


def team(team_id, name, key, slots=None, **data):
    return entity("team", slots=slots, id=team_id, name=name, key=key, **data)


def state(state_id, name, state_type, position):
    return entity("workflow_state", id=state_id, name=name, type=state_type, position=position)


@pytest.mark.asyncio
async def test_list_teams_with_members_and_projects(tool_context, linear):
    linear.teams.return_value = [
        team(
            "t1",
            "Security",
            "SEC",
            slots={
                "members": deferred([member("u1", "Ada Lovelace", displayName="ada")]),
                "projects": failing(LinearAPIError("timeout")),
            },
        ),
        team("t2", "Platform", "PLT", description="Infrastructure and tooling"),
    ]

    response = await LIST_TEAMS.create().bind(tool_context).invoke({"nameFilter": "sec"})

    text = response.text()
    assert "Security (SEC)" in text
    assert "Members (1): ada" in text
    assert "Projects" not in text
    assert "Platform" not in text
    linear.teams.assert_awaited_once_with(first=100)


@pytest.mark.asyncio
async def test_list_teams_filter_by_description(tool_context, linear):
    linear.teams.return_value = [
        team("t1", "Security", "SEC"),
        team("t2", "Platform", "PLT", description="Infrastructure and tooling"),
    ]

    response = await LIST_TEAMS.create().bind(tool_context).invoke(
        {"nameFilter": "infrastructure", "includeMembers": False, "includeProjects": False}
    )

    text = response.text()
    assert "Platform (PLT)" in text
    assert "Security" not in text


@pytest.mark.asyncio
async def test_list_teams_projects_summary(tool_context, linear):
    linear.teams.return_value = [
        team("t1", "Security", "SEC", slots={"projects": deferred([project("p1", "SOC II Compliance")])}),
    ]

    response = await LIST_TEAMS.create().bind(tool_context).invoke({"includeMembers": False})

    assert "Projects (1): SOC II Compliance" in response.text()


@pytest.mark.asyncio
async def test_list_members_in_team(tool_context, linear):
    linear.team_members.return_value = [
        member("u1", "Ada Lovelace", displayName="ada", email="ada@example.com", active=True, isMe=True),
        member("u2", "Grace Hopper", displayName="grace", active=False),
    ]

    response = await LIST_MEMBERS.create().bind(tool_context).invoke({"teamId": "t1", "nameFilter": "grace"})

    text = response.text()
    assert "Grace Hopper (grace)" in text
    assert "Status: Inactive" in text
    assert "Ada Lovelace" not in text
    linear.team_members.assert_awaited_once_with("t1")
    linear.users.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_members_widens_page_when_filtering(tool_context, linear):
    linear.users.return_value = [member("u1", "Ada Lovelace", isMe=True, email="ada@example.com")]

    response = await LIST_MEMBERS.create().bind(tool_context).invoke({"nameFilter": "ada", "limit": 5})

    text = response.text()
    assert "Ada Lovelace [you]" in text
    assert "Email: ada@example.com" in text
    linear.users.assert_awaited_once_with(first=100)


@pytest.mark.asyncio
async def test_list_members_without_filter(tool_context, linear):
    linear.users.return_value = []

    response = await LIST_MEMBERS.create().bind(tool_context).invoke({"limit": 5})

    assert response.text() == "No members found matching your criteria."
    linear.users.assert_awaited_once_with(first=5)


@pytest.mark.asyncio
async def test_workflow_states_grouped_by_type(tool_context, linear):
    linear.team.return_value = team("t1", "Engineering", "ENG")
    linear.team_states.return_value = [
        state("s4", "Done", "completed", 4),
        state("s2", "In Review", "started", 3),
        state("s1", "In Progress", "started", 2),
        state("s0", "Backlog", "backlog", 0),
        state("s5", "Canceled", "canceled", 5),
    ]

    response = await LIST_WORKFLOW_STATES.create().bind(tool_context).invoke({"teamId": "t1"})

    text = response.text()
    assert text.startswith("# Workflow states for team: Engineering")
    assert text.index("## Backlog") < text.index("## Started") < text.index("## Completed") < text.index("## Canceled")
    assert text.index("In Progress") < text.index("In Review")
    assert "- **Done** (ID: s4)" in text


@pytest.mark.asyncio
async def test_workflow_states_unknown_team(tool_context, linear):
    linear.team.side_effect = LinearNotFoundError("Team with ID t404 not found")
    linear.team_states.side_effect = LinearNotFoundError("Team with ID t404 not found")

    response = await LIST_WORKFLOW_STATES.create().bind(tool_context).invoke({"teamId": "t404"})

    assert response.is_error is True
    assert response.text().startswith("Error listing workflow states: Team with ID t404 not found")


@pytest.mark.asyncio
async def test_workflow_states_requires_team(tool_context, linear):
    response = await LIST_WORKFLOW_STATES.create().bind(tool_context).invoke({})

    assert response.is_error is False
    assert "teamId" in response.text()


@pytest.mark.asyncio
async def test_workflow_states_listing_failure(tool_context, linear):
    linear.team.return_value = team("t1", "Engineering", "ENG")
    linear.team_states.side_effect = LinearAPIError("timeout")

    response = await LIST_WORKFLOW_STATES.create().bind(tool_context).invoke({"teamId": "t1"})

    assert response.is_error is True
    assert response.text().startswith("Error listing workflow states: timeout")


@pytest.mark.asyncio
async def test_workflow_states_waits_for_both_lookups(tool_context, linear):
    """A failed team lookup still lets the sibling states query finish"""
    linear.team.side_effect = LinearNotFoundError("Team with ID t404 not found")
    linear.team_states.return_value = []

    response = await LIST_WORKFLOW_STATES.create().bind(tool_context).invoke({"teamId": "t404"})

    assert response.is_error is True
    linear.team.assert_awaited_once_with("t404")
    linear.team_states.assert_awaited_once_with("t404")
