"""Command line checks for the JIRA bug tracker plugin.

Lets an operator try a plugin configuration against a JIRA server
without going through the host application.

Settings file (YAML), values of the form ${VAR} are read from the
environment:

    jira:
      url: https://jira.example.com
      project: PROJ
      issue_type: Bug
    credentials:
      username: ${JIRA_USERNAME}
      password: ${JIRA_PASSWORD}

Examples:

    jira4-plugin --settings jira.yaml test
    jira4-plugin --settings jira.yaml fields
    jira4-plugin --settings jira.yaml fetch PROJ-12
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import yaml

from jira_bugtracker import __version__
from jira_bugtracker.audit import AuditLogger
from jira_bugtracker.plugins.base import (
    BugTrackerAuthenticationError,
    BugTrackerError,
    Credentials,
)
from jira_bugtracker.plugins.helper import resolve_env_var
from jira_bugtracker.plugins.jira4 import Jira4BugTrackerPlugin
from jira_bugtracker.plugins.jira4.config import JIRA_ISSUE_TYPE, JIRA_PROJECT, JIRA_URL


@dataclass
class CliSettings:
    """Plugin configuration and credentials read from a settings file."""

    configuration: dict[str, str | None]
    credentials: Credentials

    @classmethod
    def load(cls, path: Path) -> CliSettings:
        """Load settings from a YAML file.

        Raises:
            ValueError: If the file is not a mapping.
        """
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ValueError(f"Settings file must contain a mapping: {path}")

        jira = raw.get("jira", {}) or {}
        creds = raw.get("credentials", {}) or {}

        return cls(
            configuration={
                JIRA_URL: resolve_env_var(jira.get("url", "")),
                JIRA_PROJECT: resolve_env_var(jira.get("project")),
                JIRA_ISSUE_TYPE: resolve_env_var(jira.get("issue_type", "Bug")),
            },
            credentials=Credentials(
                username=str(resolve_env_var(creds.get("username", ""))),
                password=str(resolve_env_var(creds.get("password", ""))),
            ),
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jira4-plugin",
        description="Check a JIRA bug tracker plugin configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--settings",
        "-s",
        type=Path,
        default=Path("config/jira4.yaml"),
        help="Path to settings YAML file (default: config/jira4.yaml)",
    )
    parser.add_argument(
        "--audit-log",
        type=Path,
        help="Append an audit record of each plugin operation to this file",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--version",
        action="version",
        version=f"jira4-plugin {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("test", help="Test the configuration and credentials")
    commands.add_parser("fields", help="Print the bug form fields as JSON")
    fetch = commands.add_parser("fetch", help="Print the status of a bug as JSON")
    fetch.add_argument("bug_id", help="Issue key, e.g. PROJ-12")
    link = commands.add_parser("link", help="Print the browser link of a bug")
    link.add_argument("bug_id", help="Issue key, e.g. PROJ-12")

    return parser


def run(args: argparse.Namespace, plugin: Jira4BugTrackerPlugin) -> int:
    """Run one command against a configured plugin.

    Returns:
        Exit code.
    """
    settings = CliSettings.load(args.settings)
    plugin.set_configuration(settings.configuration)
    credentials = settings.credentials

    if args.command == "test":
        plugin.test_configuration(credentials)
        print(f"Configuration OK: {plugin.get_long_display_name()}")
    elif args.command == "fields":
        params = plugin.get_bug_parameters(None, credentials)
        print(json.dumps([p.to_dict() for p in params], indent=2))
    elif args.command == "fetch":
        bug = plugin.fetch_bug_details(args.bug_id, credentials)
        print(json.dumps(bug.to_dict(), indent=2))
    elif args.command == "link":
        print(plugin.get_bug_deep_link(args.bug_id))

    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line tool.

    Returns:
        Exit code (0 for success, 1 for errors, 2 for rejected credentials).
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.settings.exists():
        print(f"Error: Settings file not found: {args.settings}", file=sys.stderr)
        return 1

    audit_logger = AuditLogger(args.audit_log) if args.audit_log else None
    plugin = Jira4BugTrackerPlugin(audit_logger=audit_logger)

    try:
        return run(args, plugin)
    except BugTrackerAuthenticationError as e:
        print(f"Authentication failed: {e.message}", file=sys.stderr)
        return 2
    except BugTrackerError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    finally:
        if audit_logger is not None:
            audit_logger.close()


if __name__ == "__main__":
    sys.exit(main())
