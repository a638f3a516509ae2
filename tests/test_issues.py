"""
Tests for the issue and comment tools
"""

import pytest

from linear_bridge.linear_mcp.comments import ADD_COMMENT
from linear_bridge.linear_mcp.issues import (
    CREATE_ISSUE,
    GET_ISSUE,
    LIST_ISSUES,
    SEARCH_ISSUES,
    UPDATE_ISSUE,
    ListIssuesInput,
    issue_filter,
)
from linear_bridge.services.errors import LinearAPIError

from .conftest import deferred, entity, failing, issue, member


def bound(spec, context):
    return spec.create().bind(context)


def todo_state():
    return entity("workflow_state", id="s1", name="Todo", type="unstarted", position=0)


def test_issue_filter_combines_predicates():
    args = ListIssuesInput(assignee="Ada Lovelace", status="Todo", project="Roadmap", teamId="t1")
    assert issue_filter(args) == {
        "assignee": {"name": {"eq": "Ada Lovelace"}},
        "state": {"name": {"eq": "Todo"}},
        "project": {"name": {"eq": "Roadmap"}},
        "team": {"id": {"eq": "t1"}},
    }


def test_empty_filter_is_none():
    assert issue_filter(ListIssuesInput()) is None


@pytest.mark.asyncio
async def test_list_issues_sorted_and_limited(tool_context, linear):
    linear.issues.return_value = [
        issue("1", "Oldest", createdAt="2024-05-01T09:00:00Z"),
        issue("2", "Newest", createdAt="2024-05-03T09:00:00Z", slots={"state": deferred(todo_state())}),
        issue("3", "Middle", createdAt="2024-05-02T09:00:00Z"),
    ]

    response = await bound(LIST_ISSUES, tool_context).invoke({"status": "Todo", "limit": 2})

    text = response.text()
    assert text.index("ENG-2: Newest") < text.index("ENG-3: Middle")
    assert "Oldest" not in text
    assert "Status: Todo" in text
    linear.issues.assert_awaited_once_with(
        first=2, filter={"state": {"name": {"eq": "Todo"}}}, order_by="createdAt"
    )


@pytest.mark.asyncio
async def test_list_issues_ascending(tool_context, linear):
    linear.issues.return_value = [
        issue("1", "Later", updatedAt="2024-05-03T09:00:00Z"),
        issue("2", "Earlier", updatedAt="2024-05-01T09:00:00Z"),
    ]

    response = await bound(LIST_ISSUES, tool_context).invoke(
        {"sortBy": "updatedAt", "sortDirection": "ASC"}
    )

    text = response.text()
    assert text.index("Earlier") < text.index("Later")


@pytest.mark.asyncio
async def test_list_assigned_to_me(tool_context, linear):
    linear.viewer_assigned_issues.return_value = []

    response = await bound(LIST_ISSUES, tool_context).invoke({"assignedToMe": True, "assignee": "Someone"})

    assert response.text() == "No issues found matching your criteria."
    linear.viewer_assigned_issues.assert_awaited_once_with(first=25, filter=None, order_by="createdAt")
    linear.issues.assert_not_awaited()


@pytest.mark.asyncio
async def test_search_issues_with_comments(tool_context, linear):
    comment = entity("comment", slots={"user": deferred(member("u1", "Ada"))}, id="c1", body="Repro steps")
    linear.search_issues.return_value = [
        issue("1", "Login fails on Safari", slots={"comments": deferred([comment])})
    ]

    response = await bound(SEARCH_ISSUES, tool_context).invoke({"query": "safari", "includeComments": True})

    assert "ENG-1: Login fails on Safari" in response.text()
    assert "Comments: 1" in response.text()
    linear.search_issues.assert_awaited_once_with("safari", first=10)


@pytest.mark.asyncio
async def test_search_without_results(tool_context, linear):
    linear.search_issues.return_value = []

    response = await bound(SEARCH_ISSUES, tool_context).invoke({"query": "nothing"})

    assert response.text() == "No issues found for 'nothing'."


@pytest.mark.asyncio
async def test_get_issue_detail(tool_context, linear):
    linear.issue.return_value = issue(
        "1",
        "Broken login",
        description="Users cannot sign in",
        priority=1,
        slots={
            "assignee": failing(LinearAPIError("timeout")),
            "state": deferred(todo_state()),
            "team": deferred(entity("team", id="t1", name="Engineering", key="ENG")),
            "comments": deferred([]),
        },
    )

    response = await bound(GET_ISSUE, tool_context).invoke({"issueId": "ENG-1"})

    text = response.text()
    assert text.startswith("# Issue: ENG-1: Broken login")
    assert "**Priority:** Urgent" in text
    assert "**Assignee:** Unassigned" in text
    assert "**Team:** Engineering (ENG)" in text
    assert "## Comments (0)" in text
    linear.issue.assert_awaited_once_with("ENG-1")


@pytest.mark.asyncio
async def test_create_issue(tool_context, linear):
    linear.create_issue.return_value = issue("9", "New onboarding flow", priority=3)

    response = await bound(CREATE_ISSUE, tool_context).invoke(
        {"title": "New onboarding flow", "teamId": "t1", "priority": 3}
    )

    assert response.text().startswith("# Created issue: ENG-9: New onboarding flow")
    linear.create_issue.assert_awaited_once_with({"title": "New onboarding flow", "teamId": "t1", "priority": 3})


@pytest.mark.asyncio
async def test_create_issue_rejects_bad_priority(tool_context, linear):
    response = await bound(CREATE_ISSUE, tool_context).invoke({"title": "x", "teamId": "t1", "priority": 7})

    assert response.is_error is False
    assert "priority" in response.text()
    linear.create_issue.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_issue(tool_context, linear):
    linear.update_issue.return_value = issue("1", "Broken login", slots={"state": deferred(todo_state())})

    response = await bound(UPDATE_ISSUE, tool_context).invoke({"issueId": "i1", "stateId": "s1"})

    assert "**Status:** Todo" in response.text()
    linear.update_issue.assert_awaited_once_with("i1", {"stateId": "s1"})


@pytest.mark.asyncio
async def test_update_issue_without_changes(tool_context, linear):
    response = await bound(UPDATE_ISSUE, tool_context).invoke({"issueId": "i1"})

    assert response.is_error is True
    assert "No fields to update" in response.text()
    linear.update_issue.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_comment(tool_context, linear):
    linear.create_comment.return_value = entity(
        "comment",
        slots={"user": deferred(member("u1", "Ada Lovelace"))},
        id="c1",
        body="Fixed in #42",
        createdAt="2024-05-04T10:15:00Z",
    )

    response = await bound(ADD_COMMENT, tool_context).invoke({"issueId": "i1", "body": "Fixed in #42"})

    text = response.text()
    assert text.startswith("Comment added to issue i1.")
    assert "**Author:** Ada Lovelace" in text
    assert "**Created:** 2024-05-04 10:15 UTC" in text
    linear.create_comment.assert_awaited_once_with("i1", "Fixed in #42")
