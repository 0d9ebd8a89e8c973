"""Bug tracker plugins."""

from jira_bugtracker.plugins.base import (
    BatchBugTrackerPlugin,
    Bug,
    BugParam,
    BugParamChoice,
    BugParamText,
    BugParamTextArea,
    BugSubmission,
    BugTrackerAuthenticationError,
    BugTrackerConfig,
    BugTrackerError,
    BugTrackerPlugin,
    Credentials,
    IssueComment,
    IssueDetail,
    MultiIssueBugSubmission,
)
from jira_bugtracker.plugins.helper import PluginHelper
from jira_bugtracker.plugins.jira4 import Jira4BugTrackerPlugin

__all__ = [
    "BatchBugTrackerPlugin",
    "Bug",
    "BugParam",
    "BugParamChoice",
    "BugParamText",
    "BugParamTextArea",
    "BugSubmission",
    "BugTrackerAuthenticationError",
    "BugTrackerConfig",
    "BugTrackerError",
    "BugTrackerPlugin",
    "Credentials",
    "IssueComment",
    "IssueDetail",
    "Jira4BugTrackerPlugin",
    "MultiIssueBugSubmission",
    "PluginHelper",
]
