"""Click CLI: loads config, builds the registry, runs the committee, renders output."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from dotenv import load_dotenv
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, load_config
from committee.errors import ConfigurationError, StageFailed
from committee.healthcheck import run_health_checks
from committee.models import CommitteeRequest, CommitteeResult, Message
from committee.orchestrator import run_committee
from committee.output import build_response, console, print_answer, print_opinions, print_reviews, save_to_file
from committee.question_file import parse_file
from committee.registry import MemberRegistry, build_registry

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def parse_members(text: str) -> list[str]:
    """Split a comma-separated member list, dropping blanks."""
    return [m.strip() for m in text.split(",") if m.strip()]


def parse_views(text: str) -> tuple[bool, bool]:
    """Parse 'opinion,review' style views. Returns (want_opinions, want_reviews)."""
    opinion = review = False
    for part in text.split(","):
        view = part.strip().lower()
        if view == "opinion":
            opinion = True
        elif view == "review":
            review = True
    return opinion, review


def _as_csv(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _resolve_request(
    config: AppConfig,
    messages: list[Message],
    meta: dict,
    leader: str | None,
    members: str | None,
    views: str | None,
) -> CommitteeRequest:
    """Precedence for each setting: CLI flag > file metadata > config default."""
    effective_leader = leader or (str(meta["leader"]) if meta.get("leader") else config.defaults.leader)

    if members is not None:
        effective_members = parse_members(members)
    elif "members" in meta:
        effective_members = parse_members(_as_csv(meta["members"]))
    else:
        effective_members = list(config.defaults.members)

    views_text = views if views is not None else _as_csv(meta.get("views", ""))
    want_opinions, want_reviews = parse_views(views_text)

    return CommitteeRequest(
        leader=effective_leader,
        messages=messages,
        members=effective_members,
        want_opinions=want_opinions,
        want_reviews=want_reviews,
    )


def _check_participants(registry: MemberRegistry, request: CommitteeRequest) -> CommitteeRequest:
    """Ping the leader and members; drop failed members after confirmation.

    Exits when the leader or every member fails, or the user declines.
    """
    names = [n for n in registry.names() if not request.members or n in request.members]
    to_check = {n: registry[n] for n in set(names) | ({request.leader} & set(registry))}
    if not to_check:
        return request

    console.print("\n[bold]Checking models...[/bold]")
    results: dict[str, tuple[bool, str]] = asyncio.run(run_health_checks(to_check))

    failed_names: list[str] = []
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed_names.append(name)

    if not failed_names:
        console.print()
        return request

    if request.leader in failed_names:
        console.print(f"\n[bold red]Error:[/bold red] Leader '{request.leader}' failed the health check.")
        sys.exit(1)

    working = [n for n in names if n not in failed_names]
    if not working:
        console.print("\n[bold red]Error:[/bold red] No committee member passed the health check.")
        sys.exit(1)

    console.print(f"\n[yellow]{len(failed_names)} model(s) failed:[/yellow] {', '.join(failed_names)}")
    console.print(f"Working members: {', '.join(working)}")

    if not click.confirm("Continue with working members only?", default=True):
        sys.exit(0)

    console.print()
    request.members = working
    return request


async def _run(registry: MemberRegistry, request: CommitteeRequest, config: AppConfig) -> CommitteeResult:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Running committee...", total=None)

        def on_stage_complete(stage: str) -> None:
            progress.print(f"[green]OK[/green] {stage}")
            progress.update(task, description=f"Running committee (after {stage})...")

        return await run_committee(
            registry,
            request,
            config.prompts,
            max_concurrency=config.defaults.max_concurrency,
            anonymize_reviews=config.defaults.anonymize_reviews,
            on_stage_complete=on_stage_complete,
        )


def _last_user_text(messages: list[Message]) -> str:
    for message in reversed(messages):
        if message.role == "user" and message.content:
            return message.content
    return "committee"


@click.command()
@click.argument("question", required=False)
@click.option("--file", "question_file", type=click.Path(exists=True, dir_okay=False),
              help="Read the request from a .md (frontmatter) or .json (chat messages) file")
@click.option("--leader", default=None, help="Leader model for summary and synthesis (default: from config)")
@click.option("--members", default=None, help="Comma-separated committee members (default: from config, empty = all)")
@click.option("--views", default=None, help="Extra output: 'opinion', 'review' or 'opinion,review'")
@click.option("--json", "as_json", is_flag=True, help="Print a chat-completion JSON response")
@click.option("--output", "output_path", default=None, help="Transcript directory (default: from config)")
@click.option("--no-save", is_flag=True, default=False, help="Do not write a markdown transcript")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Settings YAML (default: config/settings.yaml or $COMMITTEE_CONFIG)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(
    question: str | None,
    question_file: str | None,
    leader: str | None,
    members: str | None,
    views: str | None,
    as_json: bool,
    output_path: str | None,
    no_save: bool,
    config_path: str | None,
    verbose: bool,
    skip_health_check: bool,
) -> None:
    """LLM Committee -- several models answer, cross-review, and a leader synthesizes.

    \b
    Examples:
      committee "Should we use REST or GraphQL?"
      committee "SQL or NoSQL?" --leader claude --members gpt,gemini
      committee --file conversation.json --views opinion,review --json
      committee --file question.md --skip-health-check
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config(Path(config_path) if config_path else None)
        registry = build_registry(config.models)
    except (FileNotFoundError, ConfigurationError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    meta: dict = {}
    if question_file:
        try:
            messages, meta = parse_file(Path(question_file))
        except (ValueError, json.JSONDecodeError) as exc:
            console.print(f"[bold red]Error:[/bold red] Could not read {question_file}: {exc}")
            sys.exit(1)
    elif question:
        messages = [Message(role="user", content=question)]
    else:
        console.print("[bold red]Error:[/bold red] Provide a QUESTION argument or --file.")
        sys.exit(1)

    request = _resolve_request(config, messages, meta, leader, members, views)

    if not skip_health_check:
        request = _check_participants(registry, request)

    try:
        result = asyncio.run(_run(registry, request, config))
    except StageFailed as exc:
        logger.error("Committee run failed: %s", exc)
        console.print(f"[bold red]Error:[/bold red] Committee run failed ({exc.stage}). See logs for details.")
        sys.exit(1)

    if as_json:
        console.print_json(data=build_response(result, model=request.leader))
    else:
        if result.want_opinions:
            print_opinions(result)
        if result.want_reviews:
            print_reviews(result)
        print_answer(result)

    if not no_save:
        output_dir = Path(output_path) if output_path else config.defaults.output_dir
        saved_path = save_to_file(result, _last_user_text(request.messages), output_dir)
        if not as_json:
            console.print(f"\n[dim]Saved to: {saved_path}[/dim]")


if __name__ == "__main__":
    main()
