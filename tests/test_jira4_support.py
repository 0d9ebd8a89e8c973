"""Tests for JIRA error translation, configuration, lookups and status rules."""

from types import SimpleNamespace

import pytest
import requests
from lxml import etree
from zeep.exceptions import Fault, TransportError

from jira_bugtracker.plugins.jira4.config import JiraConfig, validate_jira_url
from jira_bugtracker.plugins.jira4.exceptions import (
    CONNECTION_PROBLEM_PREFIX,
    INVALID_URL_MESSAGE,
    UNREACHABLE_MESSAGE,
    ConfigurationError,
    JiraAuthenticationError,
    JiraRemoteError,
    clean_error_message,
    find_helpful_message,
    is_authentication_fault,
    translate_error,
)
from jira_bugtracker.plugins.jira4.models import NamedLookup, entity_names
from jira_bugtracker.plugins.jira4.status import can_reopen, is_closed_status, is_open_status


class TestErrorMessages:
    """Tests for find_helpful_message."""

    def test_fault_message_after_class_name(self):
        """Should drop the Java exception class name."""
        error = Fault("com.atlassian.jira.rpc.exception.RemoteException:  Project is archived ")
        assert find_helpful_message(error) == "Project is archived"

    def test_fault_without_class_name(self):
        """Should keep a fault string without a colon."""
        assert find_helpful_message(Fault("Server error")) == "Server error"

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.MissingSchema("no schema"),
            requests.exceptions.InvalidSchema("bad schema"),
            requests.exceptions.InvalidURL("bad url"),
        ],
    )
    def test_invalid_url(self, error):
        """Should report an invalid URL."""
        assert find_helpful_message(error) == INVALID_URL_MESSAGE

    def test_connection_refused(self):
        """Should report an unreachable server."""
        error = requests.exceptions.ConnectionError("refused")
        assert find_helpful_message(error) == UNREACHABLE_MESSAGE

    def test_other_transport_error(self):
        """Should prefix other transport problems."""
        error = TransportError("Server returned 503", status_code=503)
        assert find_helpful_message(error) == CONNECTION_PROBLEM_PREFIX + "Server returned 503"

    def test_transport_error_with_cause(self):
        """Should describe the underlying cause."""
        error = requests.exceptions.Timeout()
        error.__cause__ = OSError("timed out")
        assert find_helpful_message(error) == CONNECTION_PROBLEM_PREFIX + "timed out"

    def test_unrelated_error(self):
        """Should fall back to the error text."""
        assert find_helpful_message(ValueError("boom")) == "boom"


class TestTranslateError:
    """Tests for translate_error and is_authentication_fault."""

    def test_authentication_fault_string(self):
        """Should recognize rejected credentials in the fault string."""
        error = Fault(
            "com.atlassian.jira.rpc.exception.RemoteAuthenticationException: Invalid username."
        )

        translated = translate_error(error)

        assert isinstance(translated, JiraAuthenticationError)
        assert translated.message == "Invalid username."
        assert translated.details == {"error_type": "Fault"}

    def test_authentication_fault_detail(self):
        """Should recognize rejected credentials in the fault detail."""
        detail = etree.fromstring(
            "<detail><com.atlassian.jira.rpc.exception.RemoteAuthenticationException/></detail>"
        )
        error = Fault("Invalid username or password", detail=detail)

        assert is_authentication_fault(error)
        assert isinstance(translate_error(error), JiraAuthenticationError)

    def test_other_fault(self):
        """Should translate other faults as remote errors."""
        translated = translate_error(Fault("com.atlassian.jira.rpc.exception.RemoteException: x"))

        assert type(translated) is JiraRemoteError
        assert not is_authentication_fault(requests.exceptions.ConnectionError())

    def test_transport_errors_are_remote_errors(self):
        """Should never treat network errors as authentication errors."""
        translated = translate_error(requests.exceptions.ConnectionError("refused"))

        assert type(translated) is JiraRemoteError
        assert translated.details == {"error_type": "ConnectionError"}


class TestCleanErrorMessage:
    """Tests for clean_error_message."""

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Issue type is required.", "Issue type is required"),
            (": Something failed!!", "Something failed"),
            ("  (no details)  ", "no details"),
        ],
    )
    def test_strips_punctuation(self, message, expected):
        """Should trim punctuation and whitespace at both ends."""
        assert clean_error_message(message, "fallback") == expected

    @pytest.mark.parametrize("message", [None, "", " ... "])
    def test_fallback(self, message):
        """Should use the fallback when nothing is left."""
        assert clean_error_message(message, "fallback") == "fallback"


class TestJiraConfig:
    """Tests for configuration validation."""

    def test_valid_url(self):
        """Should strip one trailing slash."""
        assert validate_jira_url("https://jira.example.com/") == "https://jira.example.com"
        assert validate_jira_url("http://jira:8080/jira") == "http://jira:8080/jira"

    @pytest.mark.parametrize(
        "url",
        ["jira.example.com", "ftp://jira.example.com", "HTTP//jira"],
    )
    def test_unsupported_scheme(self, url):
        """Should accept only http and https."""
        with pytest.raises(ConfigurationError, match="either http or https"):
            validate_jira_url(url)

    def test_empty_host(self):
        """Should reject a URL without a host."""
        with pytest.raises(ConfigurationError, match="host cannot be empty"):
            validate_jira_url("https:///path")

    @pytest.mark.parametrize(
        "url",
        [
            "http://jira host.example.com",
            "http://jira<example>.com",
            "https://jira.example.com/my jira",
        ],
    )
    def test_illegal_characters(self, url):
        """Should reject URLs with characters not allowed in a URL."""
        with pytest.raises(ConfigurationError, match="Invalid JIRA URL"):
            validate_jira_url(url)

    def test_ipv6_host(self):
        """Should accept a bracketed IPv6 host."""
        assert validate_jira_url("http://[::1]:8080/") == "http://[::1]:8080"

    def test_bad_port(self):
        """Should reject an unparsable URL."""
        with pytest.raises(ConfigurationError, match="Invalid JIRA URL"):
            validate_jira_url("http://jira:99999")

    def test_from_mapping(self):
        """Should read the host configuration map."""
        config = JiraConfig.from_mapping(
            {"jiraUrl": "http://jira/", "project": "GOAT", "issueType": "Task"}
        )

        assert config == JiraConfig(url="http://jira", project="GOAT", issue_type="Task")

    def test_blank_values_become_none(self):
        """Should treat blank project and issue type as unset."""
        config = JiraConfig.from_mapping({"jiraUrl": "http://jira", "project": "", "issueType": ""})

        assert config.project is None
        assert config.issue_type is None

    def test_issue_type_defaults_to_bug(self):
        """Should use Bug when no issue type is given."""
        config = JiraConfig.from_mapping({"jiraUrl": "http://jira", "project": "GOAT"})

        assert config.issue_type == "Bug"

    def test_schema_error(self):
        """Should report where the map is invalid."""
        with pytest.raises(ConfigurationError) as exc_info:
            JiraConfig.from_mapping({"jiraUrl": "http://jira", "project": 42})

        assert "'project'" in exc_info.value.message
        assert exc_info.value.details == {"path": "project"}

    def test_deep_link(self):
        """Should build the browse URL."""
        config = JiraConfig(url="http://jira/jira")
        assert config.deep_link("GOAT-12") == "http://jira/jira/browse/GOAT-12"


class TestNamedLookup:
    """Tests for the name/id lookup table."""

    @pytest.fixture
    def lookup(self):
        return NamedLookup.from_entities(
            [
                SimpleNamespace(id="1", name="Blocker"),
                SimpleNamespace(id="2", name="Critical"),
                SimpleNamespace(id="9", name="Critical"),
            ]
        )

    def test_both_directions(self, lookup):
        """Should map names to ids and ids to names."""
        assert lookup.id_for("Blocker") == "1"
        assert lookup.name_for("9") == "Critical"
        assert lookup.name_for("2") == "Critical"

    def test_first_duplicate_wins(self, lookup):
        """Should keep the first id for a repeated name."""
        assert lookup.id_for("Critical") == "2"

    def test_missing_entries(self, lookup):
        """Should return None for unknown or missing keys."""
        assert lookup.id_for("Trivial") is None
        assert lookup.id_for(None) is None
        assert lookup.name_for(None) is None

    def test_no_entities(self):
        """Should accept a missing list from the server."""
        assert NamedLookup.from_entities(None).ids_by_name == {}
        assert entity_names(None) == []


class TestStatusRules:
    """Tests for bug status classification."""

    @pytest.mark.parametrize("status", ["Open", "In Progress", "Reopened"])
    def test_open(self, status):
        """Should classify pending work as open."""
        assert is_open_status(status)
        assert not is_closed_status(status)

    @pytest.mark.parametrize("status", ["Resolved", "Closed", "Verified"])
    def test_closed(self, status):
        """Should classify finished work as closed."""
        assert is_closed_status(status)
        assert not is_open_status(status)

    def test_unknown_status(self):
        """Should classify unknown statuses as neither."""
        assert not is_open_status("UNKNOWN")
        assert not is_closed_status("UNKNOWN")

    @pytest.mark.parametrize(
        "status, resolution, expected",
        [
            ("Closed", "Fixed", True),
            ("Resolved", "Incomplete", True),
            ("Closed", "Won't Fix", False),
            ("Closed", "Duplicate", False),
            ("Closed", None, False),
            ("Open", "Fixed", False),
        ],
    )
    def test_can_reopen(self, status, resolution, expected):
        """Should allow reopening closed bugs resolved as fixed or incomplete."""
        assert can_reopen(status, resolution) is expected
