"""Configuration for the JIRA 4 plugin.

The host stores the plugin configuration as a flat string map. This
module validates that map and turns it into a JiraConfig.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from jsonschema import Draft202012Validator

from .exceptions import ConfigurationError

# Host configuration identifiers
JIRA_URL = "jiraUrl"
JIRA_PROJECT = "project"
JIRA_ISSUE_TYPE = "issueType"

DEFAULT_ISSUE_TYPE = "Bug"
SUPPORTED_VERSIONS = "6.x"

CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        JIRA_URL: {"type": "string", "minLength": 1},
        JIRA_PROJECT: {"type": ["string", "null"]},
        JIRA_ISSUE_TYPE: {"type": ["string", "null"]},
    },
    "required": [JIRA_URL],
}

_validator = Draft202012Validator(CONFIG_SCHEMA)

# Characters allowed in an RFC 3986 authority
_AUTHORITY = re.compile(r"^[A-Za-z0-9\-._~%!$&'()*+,;=:@\[\]]*$")
_WHITESPACE = re.compile(r"\s")


def validate_jira_url(url: str) -> str:
    """Validate a JIRA base URL.

    Args:
        url: URL entered in the host.

    Returns:
        The URL without a trailing slash.

    Raises:
        ConfigurationError: If the scheme is not http(s), the host is empty,
            the URL holds illegal characters or it cannot be parsed.
    """
    if not url.startswith(("http://", "https://")):
        raise ConfigurationError("JIRA URL protocol should be either http or https")

    if url.endswith("/"):
        url = url[:-1]

    try:
        parts = urlsplit(url)
        # Accessing the port validates it
        parts.port  # noqa: B018
    except ValueError as e:
        raise ConfigurationError(f"Invalid JIRA URL: {url}", {"url": url}) from e

    if not _AUTHORITY.match(parts.netloc) or _WHITESPACE.search(url):
        raise ConfigurationError(f"Invalid JIRA URL: {url}", {"url": url})

    if not parts.hostname:
        raise ConfigurationError("JIRA host cannot be empty", {"url": url})

    return url


@dataclass
class JiraConfig:
    """Validated plugin configuration."""

    url: str
    project: str | None = None
    issue_type: str | None = DEFAULT_ISSUE_TYPE

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> JiraConfig:
        """Create from the host configuration map.

        Args:
            values: Map of configuration identifier to value.

        Returns:
            Validated JiraConfig.

        Raises:
            ConfigurationError: If the map or the URL is invalid.
        """
        errors = sorted(_validator.iter_errors(values), key=lambda e: list(e.path))
        if errors:
            error = errors[0]
            path = ".".join(str(p) for p in error.path) if error.path else "root"
            raise ConfigurationError(
                f"Invalid configuration at '{path}': {error.message}",
                {"path": path},
            )

        return cls(
            url=validate_jira_url(values[JIRA_URL]),
            project=values.get(JIRA_PROJECT) or None,
            issue_type=values.get(JIRA_ISSUE_TYPE, DEFAULT_ISSUE_TYPE) or None,
        )

    def to_mapping(self) -> dict[str, str | None]:
        """Return the host configuration map."""
        return {
            JIRA_URL: self.url,
            JIRA_PROJECT: self.project,
            JIRA_ISSUE_TYPE: self.issue_type,
        }

    def deep_link(self, bug_id: str) -> str:
        """Return the browser URL of a JIRA issue."""
        base = self.url if self.url.endswith("/") else self.url + "/"
        return f"{base}browse/{bug_id}"
