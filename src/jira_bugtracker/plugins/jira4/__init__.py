"""JIRA 4 bug tracker plugin.

Files, reads, comments on and reopens JIRA issues through JIRA's SOAP
API on behalf of the host's users. Every operation opens its own JIRA
session with the caller's credentials and closes it before returning.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext
from datetime import datetime, timedelta

from jira_bugtracker.audit import AuditLogger
from jira_bugtracker.plugins.base import (
    DISPLAY_ONLY_SUPPORTED_VERSION,
    BatchBugTrackerPlugin,
    Bug,
    BugParam,
    BugSubmission,
    BugTrackerAuthenticationError,
    BugTrackerConfig,
    BugTrackerError,
    Credentials,
    IssueDetail,
    MultiIssueBugSubmission,
)
from jira_bugtracker.plugins.helper import PluginHelper, find_param

from .config import (
    DEFAULT_ISSUE_TYPE,
    JIRA_ISSUE_TYPE,
    JIRA_PROJECT,
    JIRA_URL,
    SUPPORTED_VERSIONS,
    JiraConfig,
)
from .connection import JiraConnection
from .exceptions import (
    ConfigurationError,
    JiraAuthenticationError,
    JiraRemoteError,
    clean_error_message,
)
from .fields import (
    PARAM_AFFECTS_VERSION,
    PARAM_ASSIGNEE,
    PARAM_DESCRIPTION,
    PARAM_DUE_IN,
    PARAM_PRIORITY,
    PARAM_SUMMARY,
    apply_project_change,
    build_bug_params,
)
from .status import ACTION_REOPEN, can_reopen, is_closed_status, is_open_status

__all__ = ["Jira4BugTrackerPlugin", "due_date_from", "trim_summary"]

logger = logging.getLogger(__name__)

SHORT_DISPLAY_NAME = "JIRA"
MAX_SUMMARY_LENGTH = 255

UNKNOWN_ERROR = "Unknown error from JIRA server."
UNKNOWN_FILE_BUG_ERROR = "Unknown error while trying to file a bug."
TEST_ERROR_PREFIX = "Error occurred during test: "


def due_date_from(due_in: str | None, now: datetime | None = None) -> datetime | None:
    """Turn a relative due date such as "14 days" into a date.

    Args:
        due_in: Relative due date. Only its digits are used.
        now: Reference time, defaults to the current time.

    Returns:
        The due date, or None when due_in is blank, has no number or is
        too far in the future for a date.
    """
    if not due_in:
        return None

    try:
        days = int(re.sub(r"\D", "", due_in))
        return (now or datetime.now()) + timedelta(days=days)
    except (ValueError, OverflowError):
        logger.info("Unable to set bug due date from %r", due_in)
        return None


def trim_summary(summary: str | None) -> str:
    """Shorten a summary to the length JIRA accepts."""
    summary = summary or ""
    if len(summary) > MAX_SUMMARY_LENGTH:
        return summary[: MAX_SUMMARY_LENGTH - 3] + "..."
    return summary


class Jira4BugTrackerPlugin(BatchBugTrackerPlugin):
    """Bug tracker plugin for Atlassian JIRA 4 and later (SOAP API)."""

    def __init__(
        self,
        helper: PluginHelper | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        """Initialize plugin.

        Args:
            helper: Host helper, used for configuration defaults.
            audit_logger: Optional audit log of plugin operations.
        """
        self._helper = helper or PluginHelper()
        self._audit = audit_logger
        self._config: JiraConfig | None = None

    def __str__(self) -> str:
        return self.get_long_display_name()

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def config(self) -> JiraConfig:
        """Current configuration.

        Raises:
            BugTrackerError: If set_configuration() was not called.
        """
        if self._config is None:
            raise BugTrackerError("JIRA plugin is not configured")
        return self._config

    def get_configuration(self) -> list[BugTrackerConfig]:
        configs = [
            BugTrackerConfig(
                identifier=DISPLAY_ONLY_SUPPORTED_VERSION,
                display_label="Supported Versions",
                description="Bug Tracker versions supported by the plugin",
                value=SUPPORTED_VERSIONS,
                required=False,
            ),
            BugTrackerConfig(
                identifier=JIRA_URL,
                display_label="JIRA URL",
                description="Base jira url, such as http://jira",
                required=True,
            ),
            BugTrackerConfig(
                identifier=JIRA_PROJECT,
                display_label="Default Project Key",
                description="Default project for filing bugs, e.g. PROJ",
                required=True,
            ),
            BugTrackerConfig(
                identifier=JIRA_ISSUE_TYPE,
                display_label="Default Issue Type",
                description="Type of issue to file, e.g. Bug, Task, or other known value.",
                value=DEFAULT_ISSUE_TYPE,
                required=True,
            ),
        ]
        self._helper.populate_with_defaults_if_available(configs)
        return configs

    def set_configuration(self, configuration: dict[str, str | None]) -> None:
        try:
            self._config = JiraConfig.from_mapping(configuration)
        except ConfigurationError as e:
            raise BugTrackerError(e.message, e.details) from e

    def get_configuration_values(self) -> dict[str, str | None]:
        """Return the configuration map, with any canonicalized values."""
        return self.config.to_mapping()

    def test_configuration(self, credentials: Credentials) -> None:
        """Check that the default project and issue type exist in JIRA.

        A default issue type matching one of the project's types apart from
        case is replaced by JIRA's spelling. All problems found are
        reported together.

        Raises:
            BugTrackerAuthenticationError: If JIRA rejects the credentials.
            BugTrackerError: Listing every problem found.
        """
        config = self.config
        error_messages: list[str] = []

        session = self._connect(credentials, "test_configuration", error_prefix=TEST_ERROR_PREFIX)
        with session as jira:
            project_key = config.project
            projects = jira.get_project_keys()

            if project_key is None:
                error_messages.append(
                    "No default project is configured. Use one of the following projects: "
                    f"{', '.join(projects)}."
                )
            elif project_key not in projects:
                error_messages.append(
                    f"No project named {project_key} was found with your permissions. "
                    "Test with a different username or use one of the following projects: "
                    f"{', '.join(projects)}."
                )
            else:
                issue_type = config.issue_type
                issue_types = jira.get_issue_types(project_key)

                for valid_type in issue_types:
                    if issue_type is not None and valid_type.lower() == issue_type.lower():
                        issue_type = valid_type
                        config.issue_type = valid_type

                if issue_type not in issue_types:
                    error_messages.append(
                        f"No issue type {issue_type} was found for project {project_key}. "
                        f"Please try one of: {', '.join(issue_types)}."
                    )

        if error_messages:
            raise BugTrackerError("\n".join(error_messages))

    def validate_credentials(self, credentials: Credentials) -> None:
        with self._connect(credentials, "validate_credentials"):
            pass

    def requires_authentication(self) -> bool:
        return True

    def get_short_display_name(self) -> str:
        return SHORT_DISPLAY_NAME

    def get_long_display_name(self) -> str:
        url = self._config.url if self._config is not None else None
        return f"{self.get_short_display_name()} ({url})"

    def get_bug_deep_link(self, bug_id: str) -> str:
        return self.config.deep_link(bug_id)

    # -------------------------------------------------------------------------
    # Bug form
    # -------------------------------------------------------------------------

    def get_bug_parameters(
        self, issue_detail: IssueDetail | None, credentials: Credentials
    ) -> list[BugParam]:
        config = self.config
        issue_types = versions = None

        with self._connect(credentials, "get_bug_parameters") as jira:
            project_keys = jira.get_project_keys()
            priorities = jira.get_priority_names()
            if config.project is not None:
                issue_types = jira.get_issue_types(config.project)
                versions = jira.get_versions(config.project)

        return build_bug_params(
            issue_detail,
            project_keys=project_keys,
            priorities=priorities,
            default_project=config.project,
            default_issue_type=config.issue_type,
            issue_types=issue_types,
            versions=versions,
            tracker_name=self.get_short_display_name(),
        )

    def on_parameter_change(
        self,
        issue_detail: IssueDetail | None,
        changed_param_identifier: str,
        current_values: list[BugParam],
        credentials: Credentials,
    ) -> list[BugParam] | None:
        if changed_param_identifier != JIRA_PROJECT:
            return None

        config = self.config
        project = find_param(JIRA_PROJECT, current_values)
        project_key = project.value if project is not None else None

        if not project_key:
            return apply_project_change(current_values, None, None, config.issue_type)

        with self._connect(credentials, "on_parameter_change") as jira:
            issue_types = jira.get_issue_types(project_key)
            versions = jira.get_versions(project_key)

        return apply_project_change(current_values, issue_types, versions, config.issue_type)

    def get_batch_bug_parameters(self, credentials: Credentials) -> list[BugParam]:
        return self.get_bug_parameters(None, credentials)

    def on_batch_bug_parameter_change(
        self,
        changed_param_identifier: str,
        current_values: list[BugParam],
        credentials: Credentials,
    ) -> list[BugParam] | None:
        return self.on_parameter_change(None, changed_param_identifier, current_values, credentials)

    # -------------------------------------------------------------------------
    # Bugs
    # -------------------------------------------------------------------------

    def file_bug(self, submission: BugSubmission, credentials: Credentials) -> Bug:
        return self._file_bug(submission.params, credentials, "file_bug")

    def file_multi_issue_bug(
        self, submission: MultiIssueBugSubmission, credentials: Credentials
    ) -> Bug:
        return self._file_bug(submission.params, credentials, "file_multi_issue_bug")

    def _file_bug(
        self, params: dict[str, str | None], credentials: Credentials, operation: str
    ) -> Bug:
        due_date = due_date_from(params.get(PARAM_DUE_IN))

        with self._connect(credentials, operation, fallback=UNKNOWN_FILE_BUG_ERROR) as jira:
            return jira.create_issue(
                project_key=params.get(JIRA_PROJECT),
                summary=trim_summary(params.get(PARAM_SUMMARY)),
                description=params.get(PARAM_DESCRIPTION),
                due_date=due_date,
                priority_name=params.get(PARAM_PRIORITY),
                issue_type_name=params.get(JIRA_ISSUE_TYPE),
                assignee=params.get(PARAM_ASSIGNEE),
                affects_version=params.get(PARAM_AFFECTS_VERSION),
            )

    def fetch_bug_details(self, bug_id: str, credentials: Credentials) -> Bug:
        with self._connect(credentials, "fetch_bug_details") as jira:
            return jira.fetch_details(bug_id)

    def is_bug_open(self, bug: Bug, credentials: Credentials) -> bool:
        return is_open_status(bug.bug_status)

    def is_bug_closed(self, bug: Bug, credentials: Credentials) -> bool:
        return is_closed_status(bug.bug_status)

    def is_bug_closed_and_can_reopen(self, bug: Bug, credentials: Credentials) -> bool:
        return can_reopen(bug.bug_status, bug.bug_resolution)

    def reopen_bug(self, bug: Bug, comment: str, credentials: Credentials) -> None:
        with self._connect(credentials, "reopen_bug") as jira:
            jira.progress_workflow(bug.bug_id, ACTION_REOPEN)
            jira.add_comment(bug.bug_id, comment)

    def add_comment_to_bug(self, bug: Bug, comment: str, credentials: Credentials) -> None:
        with self._connect(credentials, "add_comment_to_bug") as jira:
            jira.add_comment(bug.bug_id, comment)

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    @contextmanager
    def _connect(
        self,
        credentials: Credentials,
        operation: str,
        error_prefix: str = "",
        fallback: str = UNKNOWN_ERROR,
    ) -> Iterator[JiraConnection]:
        """Open a JIRA session for one operation.

        The session is closed on every exit path. JIRA errors are turned
        into host errors.

        Args:
            credentials: Credentials of the calling user.
            operation: Operation name for logs.
            error_prefix: Text put before remote error messages.
            fallback: Message used when a remote error has no usable text.

        Raises:
            BugTrackerAuthenticationError: If JIRA rejects the credentials.
            BugTrackerError: For any other JIRA error.
        """
        url = self.config.url
        audit = (
            self._audit.operation(operation, {"url": url, "username": credentials.username})
            if self._audit is not None
            else nullcontext()
        )

        with audit:
            try:
                with JiraConnection(credentials.username, credentials.password, url) as jira:
                    yield jira
            except JiraAuthenticationError as e:
                logger.info("JIRA authentication failed during %s", operation, exc_info=True)
                raise BugTrackerAuthenticationError(e.message, e.details) from e
            except JiraRemoteError as e:
                logger.info("JIRA error during %s", operation, exc_info=True)
                message = error_prefix + clean_error_message(e.message, fallback)
                raise BugTrackerError(message, e.details) from e
