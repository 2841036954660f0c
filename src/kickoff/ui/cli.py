# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from kickoff.app import (
    check_project,
    connect_platform,
    connection_status,
    disconnect_platform,
    provision_project,
)
from kickoff.config import configure_logging
from kickoff.domain.errors import UnresolvedDuplicatesError
from kickoff.domain.form import ExistingUrls
from kickoff.domain.platforms import PROCESSING_ORDER, PlatformId
from kickoff.domain.probe import MatchedProbe, NotFoundProbe, SkippedProbe, UserProvidedProbe
from kickoff.domain.resolution import (
    DocumentStoreChoice,
    RecordStoreChoice,
    TaskBoardChoice,
    parse_choice,
)
from kickoff.ui.form_input import load_form

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from kickoff.app import ProvisioningRun
    from kickoff.domain.probe import ProbeResult
    from kickoff.domain.report import DuplicateReport
    from kickoff.domain.resolution import ResolutionChoice

log = logging.getLogger(__name__)

PLATFORM_ALIASES: dict[str, PlatformId] = {
    "airtable": PlatformId.RECORD_STORE,
    "asana": PlatformId.TASK_BOARD,
    "google": PlatformId.DOCUMENT_STORE,
    **{platform.value: platform for platform in PlatformId},
}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check for duplicates and provision projects")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Look for existing projects with this name")
    check.add_argument("name", help="Candidate project name")
    check.add_argument("--record-url", help="Airtable record the project already has")
    check.add_argument("--task-board-url", help="Asana project the project already has")
    check.add_argument("--document-url", help="Drive folder or document the project already has")

    provision = subparsers.add_parser("provision", help="Provision a project from a JSON form")
    provision.add_argument("form", type=Path, help="Path to the intake form (JSON)")
    provision.add_argument(
        "--record-store",
        choices=[choice.value for choice in RecordStoreChoice],
        help="How to handle an existing Airtable record",
    )
    provision.add_argument(
        "--task-board",
        choices=[choice.value for choice in TaskBoardChoice],
        help="How to handle an existing Asana project",
    )
    provision.add_argument(
        "--document-store",
        choices=[choice.value for choice in DocumentStoreChoice],
        help="How to handle an existing Drive folder",
    )
    provision.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the duplicate report and the plan without provisioning",
    )

    connect = subparsers.add_parser("connect", help="Store tokens for a platform")
    connect.add_argument("platform", help="airtable, asana or google")
    connect.add_argument("--code", required=True, help="OAuth authorization code")
    connect.add_argument("--state", help="OAuth state returned with the code (PKCE)")

    disconnect = subparsers.add_parser("disconnect", help="Forget the tokens for a platform")
    disconnect.add_argument("platform", help="airtable, asana or google")

    subparsers.add_parser("status", help="Show the connection state of every platform")

    return parser.parse_args(list(argv))


def _parse_platform(value: str) -> PlatformId:
    try:
        return PLATFORM_ALIASES[value.strip().lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown platform: {value}") from exc


def _overrides(args: argparse.Namespace) -> list[ResolutionChoice]:
    overrides: list[ResolutionChoice] = []
    for platform in PROCESSING_ORDER:
        value = getattr(args, platform.value)
        if value:
            overrides.append(parse_choice(platform, value))
    return overrides


def _describe_probe(result: ProbeResult) -> str:
    match result:
        case NotFoundProbe():
            return "no existing project"
        case MatchedProbe(matches=matches):
            lines = [f"{len(matches)} existing match(es)"]
            lines.extend(f"    - {match.label} <{match.url}>" for match in matches)
            return "\n".join(lines)
        case UserProvidedProbe(link=link):
            return f"linked by you <{link.url}>"
        case SkippedProbe(reason=reason, detail=detail):
            return f"not checked ({reason}{': ' + detail if detail else ''})"


def _print_report(report: DuplicateReport) -> None:
    print(f"Duplicate check for {report.candidate_name!r}:")
    for platform, result in report.items():
        print(f"  {platform.label}: {_describe_probe(result)}")


def _print_run(run: ProvisioningRun) -> None:
    _print_report(run.report)
    print("Plan:")
    for platform, choice in run.plan.items():
        print(f"  {platform.label}: {choice}")
    if run.outcome is None:
        print("Dry run: nothing was provisioned.")
        return
    print("Outcome:")
    for platform, resource in run.outcome.items():
        line = f"  {platform.label}: {resource.status}"
        if resource.url:
            line += f" <{resource.url}>"
        if resource.error:
            line += f" ({resource.error})"
        print(line)
        for warning in resource.warnings:
            print(f"    warning: {warning}")
    write_back = run.outcome.write_back
    if write_back.attempted and not write_back.succeeded:
        print(f"  Links were not written back to Airtable: {write_back.error}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        platform = (
            _parse_platform(parsed_args.platform)
            if parsed_args.command in {"connect", "disconnect"}
            else None
        )
        form = load_form(parsed_args.form) if parsed_args.command == "provision" else None
        overrides = _overrides(parsed_args) if parsed_args.command == "provision" else []
        existing_urls = (
            ExistingUrls.parse(
                record_store=parsed_args.record_url,
                task_board=parsed_args.task_board_url,
                document_store=parsed_args.document_url,
            )
            if parsed_args.command == "check"
            else None
        )
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "check":
            _print_report(check_project(parsed_args.name, existing_urls))
        elif parsed_args.command == "provision" and form is not None:
            run = provision_project(form, overrides=overrides, dry_run=parsed_args.dry_run)
            _print_run(run)
            if run.outcome is not None and not run.outcome.succeeded:
                sys.exit(1)
        elif parsed_args.command == "connect" and platform is not None:
            connect_platform(platform, parsed_args.code, state=parsed_args.state)
            log.info("Connected to %s", platform.label)
        elif parsed_args.command == "disconnect" and platform is not None:
            disconnect_platform(platform)
        elif parsed_args.command == "status":
            for item, state in connection_status().items():
                print(f"{item.label}: {state}")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except UnresolvedDuplicatesError as exc:
        flags = ", ".join(f"--{platform.value.replace('_', '-')}" for platform in exc.platforms)
        log.error("%s (choose with %s)", exc, flags)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
