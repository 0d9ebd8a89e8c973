"""Bug form fields for the JIRA 4 plugin.

Builds the fields the host shows when a user files a bug, and updates
them when the user picks another project. Issue types and versions are
scoped to a project in JIRA, so those two fields follow the project
field. Everything here works on lists already fetched from the server.
"""

from __future__ import annotations

from jira_bugtracker.plugins.base import (
    BugParam,
    BugParamChoice,
    BugParamText,
    BugParamTextArea,
    IssueDetail,
)
from jira_bugtracker.plugins.helper import (
    add_or_replace_param,
    build_default_bug_description,
    remove_param,
)

from .config import JIRA_ISSUE_TYPE, JIRA_PROJECT

PARAM_SUMMARY = "summary"
PARAM_DESCRIPTION = "description"
PARAM_PRIORITY = "priority"
PARAM_DUE_IN = "dueIn"
PARAM_ASSIGNEE = "assignee"
PARAM_AFFECTS_VERSION = "affectsVersion"

DEFAULT_SUMMARY = "Fix $ATTRIBUTE_CATEGORY$ in $ATTRIBUTE_FILE$"
DEFAULT_DESCRIPTION = "Issue Ids: $ATTRIBUTE_INSTANCE_ID$\n$ISSUE_DEEPLINK$"

DUE_IN_CHOICES = ["7 days", "14 days", "90 days", "180 days"]


def issue_type_param(issue_types: list[str], default_issue_type: str | None) -> BugParamChoice:
    """Build the issue type field for a project.

    The default is preselected only if the project offers it, compared
    case-sensitively.
    """
    param = BugParamChoice(
        identifier=JIRA_ISSUE_TYPE,
        display_label="Issue Type",
        required=True,
        choice_list=list(issue_types),
    )
    if default_issue_type in issue_types:
        param.value = default_issue_type
    return param


def affects_version_param(versions: list[str]) -> BugParamChoice:
    """Build the affects version field for a project."""
    return BugParamChoice(
        identifier=PARAM_AFFECTS_VERSION,
        display_label="Affects version",
        choice_list=list(versions),
    )


def build_bug_params(
    issue_detail: IssueDetail | None,
    project_keys: list[str],
    priorities: list[str],
    default_project: str | None,
    default_issue_type: str | None = None,
    issue_types: list[str] | None = None,
    versions: list[str] | None = None,
    tracker_name: str = "JIRA",
) -> list[BugParam]:
    """Build the initial bug form.

    Args:
        issue_detail: Host issue being edited, or None for a new bug.
        project_keys: Projects visible to the user.
        priorities: Priority names.
        default_project: Configured default project.
        default_issue_type: Configured default issue type.
        issue_types: Issue types of the default project.
        versions: Versions of the default project.
        tracker_name: Name of the tracker used in field descriptions.

    Returns:
        Six fields, or eight when a default project is configured.
    """
    summary = BugParamText(
        identifier=PARAM_SUMMARY,
        display_label="Bug Summary",
        description="Title of the bug to be logged",
        required=True,
        value=DEFAULT_SUMMARY if issue_detail is None else issue_detail.summary,
    )

    description = BugParamTextArea(
        identifier=PARAM_DESCRIPTION,
        display_label="Bug Description",
        required=True,
        value=(
            DEFAULT_DESCRIPTION
            if issue_detail is None
            else build_default_bug_description(issue_detail, include_comments=True)
        ),
    )

    project = BugParamChoice(
        identifier=JIRA_PROJECT,
        display_label="Project Key",
        description="Project Key",
        required=True,
        value=default_project,
        has_dependent_params=True,
        choice_list=list(project_keys),
    )

    priority = BugParamChoice(
        identifier=PARAM_PRIORITY,
        display_label="Priority",
        required=True,
        choice_list=list(priorities),
    )

    due_in = BugParamChoice(
        identifier=PARAM_DUE_IN,
        display_label="Due In",
        description=(
            "Optional timeframe for a fix within development. "
            f"Can be adjusted within {tracker_name} after filing."
        ),
        choice_list=list(DUE_IN_CHOICES),
    )

    assignee = BugParamText(
        identifier=PARAM_ASSIGNEE,
        display_label="Assignee",
        value=None if issue_detail is None else issue_detail.assigned_username,
    )

    params: list[BugParam] = [summary, description, project, priority, due_in, assignee]

    if default_project is not None:
        params.append(issue_type_param(issue_types or [], default_issue_type))
        params.append(affects_version_param(versions or []))

    return params


def apply_project_change(
    current_values: list[BugParam],
    issue_types: list[str] | None,
    versions: list[str] | None,
    default_issue_type: str | None,
) -> list[BugParam]:
    """Update the project scoped fields after the project changed.

    Args:
        current_values: Fields as shown in the host, updated in place.
        issue_types: Issue types of the new project, or None when no
            project is selected.
        versions: Versions of the new project, or None when no project
            is selected.
        default_issue_type: Configured default issue type.

    Returns:
        current_values. With a project, the issue type and affects
        version fields are replaced in place or appended. Without one,
        both are removed. Other fields are left as they are.
    """
    if issue_types is None or versions is None:
        remove_param(PARAM_AFFECTS_VERSION, current_values)
        remove_param(JIRA_ISSUE_TYPE, current_values)
        return current_values

    add_or_replace_param(issue_type_param(issue_types, default_issue_type), current_values)
    add_or_replace_param(affects_version_param(versions), current_values)
    return current_values
