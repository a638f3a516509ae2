"""Plain-text rendering of validated entities for tool responses."""
from datetime import datetime
from typing import Optional, Sequence

from linear_bridge.services.schemas import Comment, Issue, Member, Project, Team, WorkflowState

PRIORITY_LABELS = {0: "No priority", 1: "Urgent", 2: "High", 3: "Medium", 4: "Low"}
STATE_TYPE_ORDER = ("triage", "backlog", "unstarted", "started", "completed", "canceled")
PREVIEW_LENGTH = 100


def display_date(timestamp: Optional[str], missing: str = "Not set") -> str:
    if not timestamp:
        return missing
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return "Invalid date"
    return moment.strftime("%Y-%m-%d %H:%M UTC")


def truncate(text: str, length: int = PREVIEW_LENGTH) -> str:
    if len(text) > length:
        return text[: length - 3] + "..."
    return text


def priority_label(priority: Optional[int]) -> str:
    return PRIORITY_LABELS.get(priority if priority is not None else 0, "Unknown")


def issue_label(issue: Issue) -> str:
    title = issue.title or "Untitled"
    return f"{issue.identifier}: {title}" if issue.identifier else title


def format_issue_list(issues: Sequence[Issue], empty: str = "No issues found matching your criteria.") -> str:
    if not issues:
        return empty

    lines = ["Issues found:", ""]
    for index, issue in enumerate(issues, start=1):
        lines.append(f"{index}. {issue_label(issue)}")
        lines.append(f"   ID: {issue.id}")
        lines.append(f"   Status: {issue.state.name if issue.state else 'Unknown'}")
        lines.append(f"   Priority: {priority_label(issue.priority)}")
        if issue.project:
            lines.append(f"   Project: {issue.project.name}")
        if issue.team:
            lines.append(f"   Team: {issue.team.name}")
        if issue.assignee:
            lines.append(f"   Assignee: {issue.assignee.name}")
        lines.append(f"   Created: {display_date(issue.created_at, 'Unknown')}")
        lines.append(f"   Updated: {display_date(issue.updated_at, 'Unknown')}")
        if issue.comments:
            lines.append(f"   Comments: {len(issue.comments)}")
        lines.append("")
    return "\n".join(lines)


def format_issue_detail(issue: Issue, heading: str = "Issue") -> str:
    lines = [f"# {heading}: {issue_label(issue)}", "", f"**ID:** {issue.id}"]
    if issue.url:
        lines.append(f"**URL:** {issue.url}")
    lines.append(f"**Status:** {issue.state.name if issue.state else 'Unknown'}")
    lines.append(f"**Priority:** {priority_label(issue.priority)}")
    if issue.team:
        lines.append(f"**Team:** {issue.team.name} ({issue.team.key})")
    if issue.project:
        lines.append(f"**Project:** {issue.project.name}")
    lines.append(f"**Assignee:** {issue.assignee.name if issue.assignee else 'Unassigned'}")
    lines.append(f"**Created:** {display_date(issue.created_at, 'Unknown')}")
    lines.append(f"**Updated:** {display_date(issue.updated_at, 'Unknown')}")

    if issue.description:
        lines += ["", "## Description", "", issue.description]

    if issue.comments is not None:
        lines += ["", f"## Comments ({len(issue.comments)})", ""]
        if not issue.comments:
            lines.append("No comments.")
        for comment in issue.comments:
            author = comment.user.name if comment.user else "Unknown user"
            lines.append(f"**{author}** ({display_date(comment.created_at, 'Unknown')}):")
            lines.append(comment.body)
            lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def format_comment(comment: Comment, issue_id: str) -> str:
    author = comment.user.name if comment.user else "Unknown user"
    return (
        f"Comment added to issue {issue_id}.\n\n"
        f"**ID:** {comment.id}\n"
        f"**Author:** {author}\n"
        f"**Created:** {display_date(comment.created_at, 'Unknown')}\n\n"
        f"{comment.body}\n"
    )


def format_project_list(projects: Sequence[Project]) -> str:
    if not projects:
        return "No projects found matching your criteria."

    lines = ["Projects found:", ""]
    for index, project in enumerate(projects, start=1):
        lines.append(f"{index}. {project.name}")
        lines.append(f"   ID: {project.id}")
        if project.description:
            lines.append(f"   Description: {truncate(project.description)}")
        lines.append(f"   Status: {project.status} ({round((project.progress or 0) * 100)}% complete)")
        if project.team:
            lines.append(f"   Team: {project.team.name}")
        if project.lead:
            lines.append(f"   Lead: {project.lead.name}")
        if project.start_date:
            lines.append(f"   Start date: {display_date(project.start_date)}")
        if project.target_date:
            lines.append(f"   Target date: {display_date(project.target_date)}")
        lines.append(f"   Created: {display_date(project.created_at)}")
        if project.updated_at:
            lines.append(f"   Updated: {display_date(project.updated_at)}")
        if project.url:
            lines.append(f"   URL: {project.url}")
        lines.append("")
    return "\n".join(lines)


def format_project_detail(project: Project) -> str:
    lines = [f"# Project: {project.name}", "", f"**ID:** {project.id}"]
    if project.description:
        lines += ["", "**Description:**", project.description]
    lines += ["", f"**Status:** {project.status} ({round((project.progress or 0) * 100)}% complete)"]
    if project.team:
        lines.append(f"**Team:** {project.team.name} ({project.team.key})")
    if project.lead:
        lines.append(f"**Lead:** {project.lead.name}")

    lines += ["", "**Timeline:**"]
    if project.start_date:
        lines.append(f"- Start date: {display_date(project.start_date)}")
    if project.target_date:
        lines.append(f"- Target date: {display_date(project.target_date)}")
    lines.append(f"- Created: {display_date(project.created_at)}")
    if project.updated_at:
        lines.append(f"- Last updated: {display_date(project.updated_at)}")
    if project.url:
        lines += ["", f"**URL:** {project.url}"]

    if project.members:
        lines += ["", f"## Project Members ({len(project.members)})", ""]
        for index, member in enumerate(project.members, start=1):
            entry = f"{index}. **{member.name}**"
            if member.email:
                entry += f" <{member.email}>"
            lines.append(entry)

    if project.issues:
        lines += ["", f"## Project Issues ({len(project.issues)})", ""]
        for index, issue in enumerate(project.issues, start=1):
            lines.append(f"{index}. **{issue_label(issue)}** ({issue.id})")
            if issue.state:
                lines.append(f"   - Status: {issue.state.name}")
            if issue.assignee:
                lines.append(f"   - Assigned to: {issue.assignee.name}")
            if issue.priority is not None:
                lines.append(f"   - Priority: {priority_label(issue.priority)}")
            if issue.updated_at:
                lines.append(f"   - Last updated: {display_date(issue.updated_at)}")
            if issue.comments:
                lines.append(f"   - Comments ({len(issue.comments)}):")
                for number, comment in enumerate(issue.comments, start=1):
                    author = f"**{comment.user.name}**: " if comment.user else ""
                    lines.append(f"     {number}. {author}{truncate(comment.body)}")
    return "\n".join(lines) + "\n"


def format_team_list(teams: Sequence[Team]) -> str:
    if not teams:
        return "No teams found matching your criteria."

    lines = ["Teams found:", ""]
    for index, team in enumerate(teams, start=1):
        lines.append(f"{index}. {team.name} ({team.key})")
        lines.append(f"   ID: {team.id}")
        if team.description:
            lines.append(f"   Description: {truncate(team.description)}")
        if team.private:
            lines.append("   Private: yes")
        if team.members is not None:
            names = ", ".join(member.display_name or member.name for member in team.members[:10])
            more = f" (+{len(team.members) - 10} more)" if len(team.members) > 10 else ""
            lines.append(f"   Members ({len(team.members)}): {names or 'none'}{more}")
        if team.projects is not None:
            names = ", ".join(project.name for project in team.projects[:10])
            more = f" (+{len(team.projects) - 10} more)" if len(team.projects) > 10 else ""
            lines.append(f"   Projects ({len(team.projects)}): {names or 'none'}{more}")
        lines.append("")
    return "\n".join(lines)


def format_member_list(members: Sequence[Member]) -> str:
    if not members:
        return "No members found matching your criteria."

    lines = ["Members found:", ""]
    for index, member in enumerate(members, start=1):
        label = member.name
        if member.display_name and member.display_name != member.name:
            label += f" ({member.display_name})"
        if member.is_me:
            label += " [you]"
        lines.append(f"{index}. {label}")
        lines.append(f"   ID: {member.id}")
        if member.email:
            lines.append(f"   Email: {member.email}")
        lines.append(f"   Status: {'Active' if member.active is not False else 'Inactive'}")
        if member.admin:
            lines.append("   Role: Admin")
        if member.last_seen:
            lines.append(f"   Last seen: {display_date(member.last_seen)}")
        lines.append("")
    return "\n".join(lines)


def format_workflow_states(team: Team, states: Sequence[WorkflowState]) -> str:
    if not states:
        return f"No workflow states found for team: {team.name} ({team.id})"

    lines = [f"# Workflow states for team: {team.name}", ""]
    for state_type in STATE_TYPE_ORDER:
        group = sorted(
            (state for state in states if state.type == state_type),
            key=lambda state: state.position if state.position is not None else float("inf"),
        )
        if not group:
            continue
        lines.append(f"## {state_type.capitalize()}")
        for state in group:
            entry = f"- **{state.name}** (ID: {state.id})"
            if state.description:
                entry += f": {state.description}"
            lines.append(entry)
        lines.append("")
    return "\n".join(lines)
