"""SOAP connection to a JIRA 4 server.

Wraps the JIRA SOAP service (jirasoapservice-v2) for the calls the
plugin needs. Each connection is one authenticated session: it logs in
when created and logs out when closed. Connections are never shared
between users or calls.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from zeep import Client, Settings

from jira_bugtracker.plugins.base import Bug

from .exceptions import REMOTE_ERRORS, JiraRemoteError, translate_error
from .models import BEANS_NAMESPACE, UNKNOWN_STATUS, NamedLookup, entity_names

logger = logging.getLogger(__name__)

SOAP_SERVICE_PATH = "/rpc/soap/jirasoapservice-v2"


class JiraConnection:
    """Authenticated session against the JIRA SOAP service.

    Usage:
        with JiraConnection(user, password, "https://jira.example.com") as jira:
            keys = jira.get_project_keys()

    Raises:
        JiraAuthenticationError: If JIRA rejects the credentials.
        JiraRemoteError: If the server cannot be reached or login fails.
    """

    def __init__(self, username: str, password: str, base_url: str) -> None:
        self.base_url = base_url
        self.wsdl_url = f"{base_url}{SOAP_SERVICE_PATH}?wsdl"
        self._token: str | None = None

        try:
            self._client = Client(self.wsdl_url, settings=Settings(strict=False))
            self._service = self._client.service
            self._token = self._service.login(username, password)
        except REMOTE_ERRORS as e:
            raise translate_error(e) from e

        self._types = self._client.type_factory(BEANS_NAMESPACE)

    def __enter__(self) -> JiraConnection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._token is None

    def close(self) -> None:
        """Log out and invalidate the session token.

        The connection is unusable afterwards. Logout failures are ignored,
        the session may already be gone on the server.
        """
        if self._token is None:
            return
        token, self._token = self._token, None
        try:
            self._service.logout(token)
        except REMOTE_ERRORS:
            logger.debug("Unable to close JIRA connection, probably already closed", exc_info=True)

    def _call(self, operation: str, *args: Any) -> Any:
        """Call a SOAP operation with the session token.

        Raises:
            JiraRemoteError: If the call fails or the session is closed.
        """
        if self._token is None:
            raise JiraRemoteError("JIRA connection is closed")

        method = getattr(self._service, operation)
        try:
            return method(self._token, *args)
        except REMOTE_ERRORS as e:
            raise translate_error(e) from e

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_project_keys(self) -> list[str]:
        """Return keys of the projects the user may see."""
        return [project.key for project in self._call("getProjectsNoSchemes") or []]

    def get_priority_names(self) -> list[str]:
        """Return names of the priorities that can be set on issues."""
        return entity_names(self._call("getPriorities"))

    def get_issue_types(self, project_key: str) -> list[str]:
        """Return names of the issue types available in a project."""
        project = self._call("getProjectByKey", project_key)
        return entity_names(self._call("getIssueTypesForProject", project.id))

    def get_versions(self, project_key: str) -> list[str]:
        """Return names of the versions of a project."""
        return entity_names(self._call("getVersions", project_key))

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    def create_issue(
        self,
        project_key: str,
        summary: str,
        description: str | None,
        due_date: datetime | None,
        priority_name: str | None,
        issue_type_name: str | None,
        assignee: str | None = None,
        affects_version: str | None = None,
    ) -> Bug:
        """File a new issue.

        Priority and issue type names are sent as the matching ids. A name
        JIRA does not know is sent as no id and left for JIRA to judge.

        Args:
            project_key: Project to file the issue in.
            summary: Title of the issue.
            description: Issue description.
            due_date: Optional date the fix is expected by.
            priority_name: Priority name, e.g. "Critical".
            issue_type_name: Issue type name, e.g. "Bug".
            assignee: Optional user name. JIRA assigns the issue when blank.
            affects_version: Optional version name of the project.

        Returns:
            The created issue with its current status.
        """
        priorities = NamedLookup.from_entities(self._call("getPriorities"))
        issue_types = NamedLookup.from_entities(self._call("getIssueTypes"))
        affects_versions = self._find_versions(project_key, affects_version)

        fields: dict[str, Any] = {
            "project": project_key,
            "summary": summary,
            "description": description,
            "duedate": due_date,
            "priority": priorities.id_for(priority_name),
            "type": issue_types.id_for(issue_type_name),
            "affectsVersions": affects_versions,
        }
        if assignee:
            fields["assignee"] = assignee

        created = self._call("createIssue", self._types.RemoteIssue(**fields))
        logger.info("Created JIRA issue %s in project %s", created.key, project_key)
        return self.fetch_details(created.key)

    def _find_versions(self, project_key: str, version_name: str | None) -> list[Any] | None:
        """Return the project versions named version_name.

        Returns:
            None when no version was asked for, otherwise the matching
            remote version objects (possibly none).
        """
        if not version_name:
            return None
        known = self._call("getVersions", project_key) or []
        return [version for version in known if version.name == version_name]

    def fetch_details(self, issue_id: str) -> Bug:
        """Return the status and resolution of an issue.

        Args:
            issue_id: Issue key, e.g. "PROJ-12".

        Raises:
            JiraRemoteError: If the issue or the status and resolution
                tables cannot be read.
        """
        issue = self._call("getIssue", issue_id)
        statuses = NamedLookup.from_entities(self._call("getStatuses"))
        resolutions = NamedLookup.from_entities(self._call("getResolutions"))

        return Bug(
            bug_id=issue_id,
            bug_status=statuses.name_for(issue.status) or UNKNOWN_STATUS,
            bug_resolution=resolutions.name_for(issue.resolution),
        )

    def add_comment(self, issue_id: str, body: str) -> None:
        """Add a comment to an issue."""
        self._call("addComment", issue_id, self._types.RemoteComment(body=body))

    def progress_workflow(self, issue_id: str, action_name: str) -> bool:
        """Run a workflow action on an issue.

        Args:
            issue_id: Issue key.
            action_name: Action name, e.g. "Reopen Issue".

        Returns:
            False if the action is not available in the issue's current
            state, in which case nothing is done.
        """
        actions = NamedLookup.from_entities(self._call("getAvailableActions", issue_id))
        action_id = actions.id_for(action_name)
        if action_id is None:
            logger.debug("Action %r not available for %s", action_name, issue_id)
            return False

        self._call("progressWorkflowAction", issue_id, action_id, [])
        return True
