"""Helpers shared by bug tracker plugins.

Field list manipulation, default bug descriptions and configuration
defaults loaded from a YAML file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from jira_bugtracker.plugins.base import BugParam, BugTrackerConfig, IssueDetail

logger = logging.getLogger(__name__)

# Environment variable naming the YAML file with configuration defaults
DEFAULTS_PATH_ENV = "JIRA_PLUGIN_DEFAULTS"


def find_param(identifier: str, params: list[BugParam]) -> BugParam | None:
    """Find a field by identifier.

    Args:
        identifier: Field identifier.
        params: Fields to search.

    Returns:
        The first matching field, or None.
    """
    for param in params:
        if param.identifier == identifier:
            return param
    return None


def remove_param(identifier: str, params: list[BugParam]) -> None:
    """Remove every field with the given identifier, in place."""
    params[:] = [p for p in params if p.identifier != identifier]


def add_or_replace_param(param: BugParam, params: list[BugParam]) -> None:
    """Replace the field with the same identifier, or append it.

    A replaced field keeps its position in the list. Only the first field
    with the identifier is replaced, other fields are left as they are.

    Args:
        param: New field.
        params: Field list, updated in place.
    """
    for index, existing in enumerate(params):
        if existing.identifier == param.identifier:
            params[index] = param
            return
    params.append(param)


def build_default_bug_description(issue: IssueDetail, include_comments: bool = True) -> str:
    """Describe a host issue as plain text for a bug description.

    Args:
        issue: Host issue.
        include_comments: Append the issue's comments.

    Returns:
        Multi-line description.
    """
    lines = [f"Issue Ids: {issue.issue_instance_id}"]
    if issue.issue_deep_link:
        lines.append(issue.issue_deep_link)
    lines.append("")

    if issue.category:
        lines.append(f"Category: {issue.category}")
    if issue.file_name:
        location = issue.file_name
        if issue.line_number is not None:
            location = f"{location}:{issue.line_number}"
        lines.append(f"Location: {location}")
    if issue.project_name:
        project = issue.project_name
        if issue.project_version_name:
            project = f"{project} ({issue.project_version_name})"
        lines.append(f"Project: {project}")
    for tag, value in sorted(issue.custom_tags.items()):
        lines.append(f"{tag}: {value}")

    if issue.description:
        lines.append("")
        lines.append(issue.description)

    if include_comments and issue.comments:
        lines.append("")
        lines.append("Comments:")
        for comment in issue.comments:
            author = comment.username or "unknown"
            if comment.timestamp:
                lines.append(f"[{comment.timestamp.isoformat()}] {author}: {comment.body}")
            else:
                lines.append(f"{author}: {comment.body}")

    return "\n".join(lines).rstrip()


def resolve_env_var(value: object) -> object:
    """Resolve ${VAR_NAME} references to environment variables."""
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")

    return value


class PluginHelper:
    """Host services available to a plugin.

    Args:
        defaults_path: YAML file with configuration defaults. Falls back to
            the file named by JIRA_PLUGIN_DEFAULTS.
    """

    def __init__(self, defaults_path: Path | None = None) -> None:
        self._defaults_path = defaults_path

    @property
    def defaults_path(self) -> Path | None:
        if self._defaults_path is not None:
            return self._defaults_path
        env_path = os.environ.get(DEFAULTS_PATH_ENV)
        return Path(env_path) if env_path else None

    def load_defaults(self) -> dict[str, str]:
        """Load configuration defaults.

        Returns:
            Mapping of configuration identifier to default value. Empty when
            no defaults file is configured or it does not exist.
        """
        path = self.defaults_path
        if path is None or not path.exists():
            return {}

        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            logger.warning("Ignoring defaults file %s: not a mapping", path)
            return {}

        return {
            str(key): str(resolve_env_var(value))
            for key, value in raw.items()
            if value is not None
        }

    def populate_with_defaults_if_available(self, configs: list[BugTrackerConfig]) -> None:
        """Fill configuration entries from the defaults file, in place."""
        defaults = self.load_defaults()
        for config in configs:
            if config.identifier in defaults:
                config.value = defaults[config.identifier]
