"""Bug tracker plugin base class and data structures.

Defines the contract between the host application and a bug tracker
plugin: the configuration and form-field descriptions the host renders,
the bug and issue records exchanged on every call, and the two error
kinds a plugin may raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

# Identifier of the read-only configuration entry listing supported servers
DISPLAY_ONLY_SUPPORTED_VERSION = "(display-only)supportedVersions"


class BugTrackerError(Exception):
    """Raised when a bug tracker operation fails."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BugTrackerAuthenticationError(BugTrackerError):
    """Raised when the bug tracker rejects the user's credentials.

    The host reacts by asking the user to enter credentials again.
    """

    pass


@dataclass
class Credentials:
    """Per-call user credentials supplied by the host."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='[REDACTED]')"


@dataclass
class BugTrackerConfig:
    """One entry of the plugin configuration shown by the host."""

    identifier: str
    display_label: str = ""
    description: str = ""
    value: str | None = None
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to host configuration format.

        Returns:
            Dictionary describing the configuration entry.
        """
        return {
            "identifier": self.identifier,
            "displayLabel": self.display_label,
            "description": self.description,
            "value": self.value,
            "required": self.required,
        }


@dataclass
class BugParam:
    """A form field the host renders when a user files a bug."""

    param_type: ClassVar[str] = "text"

    identifier: str
    display_label: str = ""
    description: str = ""
    required: bool = False
    value: str | None = None
    has_dependent_params: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to host field format.

        Returns:
            Dictionary describing the field.
        """
        return {
            "type": self.param_type,
            "identifier": self.identifier,
            "displayLabel": self.display_label,
            "description": self.description,
            "required": self.required,
            "value": self.value,
            "hasDependentParams": self.has_dependent_params,
        }


@dataclass
class BugParamText(BugParam):
    """Single line text field."""

    param_type: ClassVar[str] = "text"


@dataclass
class BugParamTextArea(BugParam):
    """Multi line text field."""

    param_type: ClassVar[str] = "textarea"


@dataclass
class BugParamChoice(BugParam):
    """Single choice field."""

    param_type: ClassVar[str] = "choice"

    choice_list: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to host field format, including the choices."""
        data = super().to_dict()
        data["choiceList"] = list(self.choice_list)
        return data


@dataclass
class Bug:
    """A bug as known to the remote tracker."""

    bug_id: str
    bug_status: str
    bug_resolution: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "bugId": self.bug_id,
            "bugStatus": self.bug_status,
            "bugResolution": self.bug_resolution,
        }


@dataclass
class IssueComment:
    """A comment made on a host issue."""

    body: str
    username: str = ""
    timestamp: datetime | None = None


@dataclass
class IssueDetail:
    """A host issue a bug is being filed for."""

    summary: str = ""
    description: str = ""
    category: str = ""
    assigned_username: str | None = None
    file_name: str = ""
    line_number: int | None = None
    issue_deep_link: str = ""
    issue_instance_id: str = ""
    project_name: str = ""
    project_version_name: str = ""
    comments: list[IssueComment] = field(default_factory=list)
    custom_tags: dict[str, str] = field(default_factory=dict)


@dataclass
class BugSubmission:
    """Field values entered for a bug about a single host issue."""

    params: dict[str, str | None]
    issue_detail: IssueDetail | None = None


@dataclass
class MultiIssueBugSubmission:
    """Field values entered for a bug covering several host issues."""

    params: dict[str, str | None]
    issue_details: list[IssueDetail] = field(default_factory=list)


class BugTrackerPlugin(ABC):
    """Abstract base class for bug tracker plugins.

    The host configures the plugin once through set_configuration() and
    then calls the remaining operations with the credentials of the user
    on whose behalf it acts.
    """

    @abstractmethod
    def get_configuration(self) -> list[BugTrackerConfig]:
        """Return the configuration entries the host should ask for."""
        pass

    @abstractmethod
    def set_configuration(self, configuration: dict[str, str | None]) -> None:
        """Apply configuration values entered in the host.

        Raises:
            BugTrackerError: If the configuration is invalid.
        """
        pass

    @abstractmethod
    def test_configuration(self, credentials: Credentials) -> None:
        """Check the configuration against the remote tracker.

        Raises:
            BugTrackerAuthenticationError: If the credentials are rejected.
            BugTrackerError: If the configuration does not work.
        """
        pass

    @abstractmethod
    def validate_credentials(self, credentials: Credentials) -> None:
        """Check that the remote tracker accepts the credentials."""
        pass

    @abstractmethod
    def requires_authentication(self) -> bool:
        """Return True if operations need user credentials."""
        pass

    @abstractmethod
    def get_short_display_name(self) -> str:
        """Return the name shown in lists of trackers."""
        pass

    @abstractmethod
    def get_long_display_name(self) -> str:
        """Return the name shown in detailed views."""
        pass

    @abstractmethod
    def get_bug_deep_link(self, bug_id: str) -> str:
        """Return a browser link to the bug."""
        pass

    @abstractmethod
    def get_bug_parameters(
        self, issue_detail: IssueDetail | None, credentials: Credentials
    ) -> list[BugParam]:
        """Return the fields the user fills in to file a bug."""
        pass

    @abstractmethod
    def on_parameter_change(
        self,
        issue_detail: IssueDetail | None,
        changed_param_identifier: str,
        current_values: list[BugParam],
        credentials: Credentials,
    ) -> list[BugParam] | None:
        """Recompute fields after the user changed one.

        Returns:
            The updated field list, or None when nothing changes.
        """
        pass

    @abstractmethod
    def file_bug(self, submission: BugSubmission, credentials: Credentials) -> Bug:
        """File a bug with the entered field values."""
        pass

    @abstractmethod
    def fetch_bug_details(self, bug_id: str, credentials: Credentials) -> Bug:
        """Return the current status of a bug."""
        pass

    @abstractmethod
    def is_bug_open(self, bug: Bug, credentials: Credentials) -> bool:
        pass

    @abstractmethod
    def is_bug_closed(self, bug: Bug, credentials: Credentials) -> bool:
        pass

    @abstractmethod
    def is_bug_closed_and_can_reopen(self, bug: Bug, credentials: Credentials) -> bool:
        pass

    @abstractmethod
    def reopen_bug(self, bug: Bug, comment: str, credentials: Credentials) -> None:
        """Reopen a closed bug, leaving a comment."""
        pass

    @abstractmethod
    def add_comment_to_bug(self, bug: Bug, comment: str, credentials: Credentials) -> None:
        """Add a comment to a bug."""
        pass


class BatchBugTrackerPlugin(BugTrackerPlugin):
    """Plugin that can also file one bug for several host issues."""

    @abstractmethod
    def get_batch_bug_parameters(self, credentials: Credentials) -> list[BugParam]:
        """Return the fields for filing a bug covering several issues."""
        pass

    @abstractmethod
    def on_batch_bug_parameter_change(
        self,
        changed_param_identifier: str,
        current_values: list[BugParam],
        credentials: Credentials,
    ) -> list[BugParam] | None:
        """Recompute batch fields after the user changed one."""
        pass

    @abstractmethod
    def file_multi_issue_bug(
        self, submission: MultiIssueBugSubmission, credentials: Credentials
    ) -> Bug:
        """File one bug covering several host issues."""
        pass
