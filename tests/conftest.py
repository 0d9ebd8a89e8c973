"""Pytest configuration and fixtures for the JIRA plugin tests.

An in-memory fake of the JIRA SOAP service replaces zeep's Client, so
no test needs a JIRA server.
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from zeep.exceptions import Fault

from jira_bugtracker.plugins.base import Credentials
from jira_bugtracker.plugins.helper import PluginHelper
from jira_bugtracker.plugins.jira4 import Jira4BugTrackerPlugin

AUTH_FAULT = (
    "com.atlassian.jira.rpc.exception.RemoteAuthenticationException: "
    "Invalid username or password."
)


def named(entity_id: str, name: str, **extra) -> SimpleNamespace:
    """Build a remote named entity (priority, status, version, ...)."""
    return SimpleNamespace(id=entity_id, name=name, **extra)


class FakeJiraSoapService:
    """In-memory stand-in for jirasoapservice-v2.

    Projects: GOAT (two versions, default issue types) and BANK (no
    versions, no "Bug" issue type).
    """

    def __init__(self) -> None:
        self.users = {"alice": "secret"}
        self.projects = {
            "GOAT": named("10000", "Goat", key="GOAT"),
            "BANK": named("10001", "Bank", key="BANK"),
        }
        self.all_issue_types = [
            named("1", "Bug"),
            named("2", "New Feature"),
            named("3", "Task"),
            named("4", "Improvement"),
            named("5", "Sub-task"),
        ]
        self.issue_types_by_project = {
            "10000": self.all_issue_types[:4],
            "10001": self.all_issue_types[1:],
        }
        self.priorities = [
            named("1", "Blocker"),
            named("2", "Critical"),
            named("3", "Major"),
            named("4", "Minor"),
            named("5", "Trivial"),
        ]
        self.versions = {
            "GOAT": [named("10010", "1.0"), named("10011", "2.0")],
            "BANK": [],
        }
        self.statuses = [
            named("1", "Open"),
            named("3", "In Progress"),
            named("4", "Reopened"),
            named("5", "Resolved"),
            named("6", "Closed"),
        ]
        self.resolutions = [
            named("1", "Fixed"),
            named("2", "Won't Fix"),
            named("3", "Duplicate"),
            named("4", "Incomplete"),
            named("5", "Cannot Reproduce"),
        ]

        self.issues: dict[str, SimpleNamespace] = {}
        self.created: list[SimpleNamespace] = []
        self.comments: dict[str, list[str]] = {}
        self.actions: dict[str, list[SimpleNamespace]] = {}
        self.transitions: list[tuple[str, str]] = []

        self.tokens: set[str] = set()
        self.logged_out: list[str] = []
        self.calls: list[str] = []
        self.fail_on: dict[str, Exception] = {}
        self._counter = 0

    # Test helpers

    def add_issue(
        self,
        key: str,
        status: str = "1",
        resolution: str | None = None,
        actions: list[SimpleNamespace] | None = None,
    ) -> None:
        self.issues[key] = SimpleNamespace(key=key, status=status, resolution=resolution)
        self.actions[key] = list(actions or [])

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _check(self, operation: str, token: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise self.fail_on[operation]
        if token not in self.tokens:
            raise Fault(
                "com.atlassian.jira.rpc.exception.RemoteAuthenticationException: "
                "User not authenticated yet, or session timed out."
            )

    def _project(self, key: str) -> SimpleNamespace:
        if key not in self.projects:
            raise Fault(
                "com.atlassian.jira.rpc.exception.RemoteException: "
                f"No project could be found with key '{key}'."
            )
        return self.projects[key]

    # SOAP operations

    def login(self, username, password):
        self.calls.append("login")
        if "login" in self.fail_on:
            raise self.fail_on["login"]
        if self.users.get(username) != password:
            raise Fault(AUTH_FAULT)
        token = f"token-{self._next()}"
        self.tokens.add(token)
        return token

    def logout(self, token):
        self.calls.append("logout")
        if "logout" in self.fail_on:
            raise self.fail_on["logout"]
        self.tokens.discard(token)
        self.logged_out.append(token)
        return True

    def getProjectsNoSchemes(self, token):
        self._check("getProjectsNoSchemes", token)
        return list(self.projects.values())

    def getProjectByKey(self, token, key):
        self._check("getProjectByKey", token)
        return self._project(key)

    def getIssueTypesForProject(self, token, project_id):
        self._check("getIssueTypesForProject", token)
        return list(self.issue_types_by_project.get(project_id, []))

    def getIssueTypes(self, token):
        self._check("getIssueTypes", token)
        return list(self.all_issue_types)

    def getPriorities(self, token):
        self._check("getPriorities", token)
        return list(self.priorities)

    def getVersions(self, token, key):
        self._check("getVersions", token)
        self._project(key)
        return list(self.versions.get(key, []))

    def getStatuses(self, token):
        self._check("getStatuses", token)
        return list(self.statuses)

    def getResolutions(self, token):
        self._check("getResolutions", token)
        return list(self.resolutions)

    def createIssue(self, token, issue):
        self._check("createIssue", token)
        self._project(issue.project)
        key = f"{issue.project}-{self._next()}"
        self.created.append(issue)
        self.add_issue(
            key,
            status="1",
            actions=[named("5", "Resolve Issue"), named("2", "Close Issue")],
        )
        return SimpleNamespace(key=key)

    def getIssue(self, token, key):
        self._check("getIssue", token)
        if key not in self.issues:
            raise Fault(
                "com.atlassian.jira.rpc.exception.RemotePermissionException: "
                "This issue does not exist or you don't have permission to view it."
            )
        return self.issues[key]

    def addComment(self, token, key, comment):
        self._check("addComment", token)
        self.getIssue(token, key)
        self.comments.setdefault(key, []).append(comment.body)

    def getAvailableActions(self, token, key):
        self._check("getAvailableActions", token)
        return list(self.actions.get(key, []))

    def progressWorkflowAction(self, token, key, action_id, fields):
        self._check("progressWorkflowAction", token)
        self.transitions.append((key, action_id))
        if action_id == "3":
            self.issues[key].status = "4"
            self.issues[key].resolution = None
        return self.issues[key]


class FakeTypeFactory:
    """Builds SOAP bean objects as plain namespaces."""

    def __getattr__(self, name):
        def build(**fields):
            return SimpleNamespace(type_name=name, **fields)

        return build


class FakeClient:
    """Stand-in for zeep.Client."""

    def __init__(self, wsdl: str, service: FakeJiraSoapService) -> None:
        self.wsdl = wsdl
        self.service = service
        self.namespaces: list[str] = []

    def type_factory(self, namespace: str) -> FakeTypeFactory:
        self.namespaces.append(namespace)
        return FakeTypeFactory()


@pytest.fixture
def jira_service() -> FakeJiraSoapService:
    """The fake JIRA server."""
    return FakeJiraSoapService()


@pytest.fixture(autouse=True)
def soap_clients(monkeypatch, jira_service) -> list[FakeClient]:
    """Replace zeep's Client with the fake for every test.

    Returns:
        Clients created so far, one per connection.
    """
    clients: list[FakeClient] = []

    def create_client(wsdl, settings=None, **kwargs):
        client = FakeClient(wsdl, jira_service)
        clients.append(client)
        return client

    monkeypatch.setattr("jira_bugtracker.plugins.jira4.connection.Client", create_client)
    return clients


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(username="alice", password="secret")


@pytest.fixture
def bad_credentials() -> Credentials:
    return Credentials(username="user", password="password")


@pytest.fixture
def plugin(tmp_path: Path) -> Jira4BugTrackerPlugin:
    """Plugin configured for http://jira.example.com, project GOAT."""
    plugin = Jira4BugTrackerPlugin(helper=PluginHelper(defaults_path=tmp_path / "none.yaml"))
    plugin.set_configuration(
        {"jiraUrl": "http://jira.example.com/", "project": "GOAT", "issueType": "Bug"}
    )
    return plugin
