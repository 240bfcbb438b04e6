"""Rich console output, chat-completion response shape, and markdown transcript save."""

import logging
import re
import time
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from committee.models import CommitteeResult

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len] or "committee"


def _preview(text: str, words: int = 50) -> str:
    """Return first N words of a text."""
    all_words = text.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def build_response(result: CommitteeResult, model: str | None = None) -> dict:
    """Shape a result like a chat completion; opinions/reviews only when requested."""
    created = int(time.time())
    response: dict = {
        "id": "chatcmpl-" + datetime.fromtimestamp(created).strftime("%Y%m%d%H%M%S"),
        "object": "chat.completion",
        "created": created,
        "model": model or result.leader,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": result.answer},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
    }
    if result.want_opinions:
        response["opinions"] = {name: result.opinions[name] for name in sorted(result.opinions)}
    if result.want_reviews:
        response["reviews"] = {name: result.reviews[name] for name in sorted(result.reviews)}
    return response


def print_opinions(result: CommitteeResult) -> None:
    """Print a brief preview of each phase-1 opinion."""
    console.print(Rule("[bold cyan]Phase 1: Opinions[/bold cyan]"))
    for name in sorted(result.opinions):
        console.print(Panel(_preview(result.opinions[name]), title=f"[bold]{name}[/bold]", border_style="dim"))
    missing = sorted(set(result.members) - set(result.opinions))
    if missing:
        console.print(Text(f"No opinion from: {', '.join(missing)}", style="yellow"))


def print_reviews(result: CommitteeResult) -> None:
    console.print(Rule("[bold cyan]Phase 2: Reviews[/bold cyan]"))
    for name in sorted(result.reviews):
        body = "\n".join(line for line in result.reviews[name] if line)
        console.print(Panel(body, title=f"[bold]{name}[/bold]", border_style="dim"))


def print_answer(result: CommitteeResult) -> None:
    """Print the final answer to the console using Rich markdown."""
    console.print(Rule("[bold green]Committee Answer[/bold green]"))
    console.print(
        Text(
            f"Leader: {result.leader} | "
            f"Members: {', '.join(result.members)} | "
            f"Opinions: {len(result.opinions)}/{len(result.members)} | "
            f"Duration: {result.total_duration_sec:.1f}s",
            style="dim",
        )
    )
    console.print(Markdown(result.answer))


def save_to_file(result: CommitteeResult, question: str, output_dir: Path) -> Path:
    """Save the full committee transcript as a markdown file.

    Args:
        result: The completed CommitteeResult.
        question: The last user message, used for the title and filename.
        output_dir: Directory to save the file in.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{_slug(question)}.md"

    lines: list[str] = [
        f"# LLM Committee: {question[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Leader:** {result.leader}",
        f"**Members:** {', '.join(result.members)}",
        f"**Duration:** {result.total_duration_sec:.1f}s",
        "",
        "---",
        "",
    ]

    if result.summary:
        lines += ["## Summary", "", result.summary, ""]

    lines += ["## Phase 1: Opinions", ""]
    for name in sorted(result.opinions):
        lines += [f"### {name}", "", result.opinions[name], ""]

    lines += ["## Phase 2: Reviews", ""]
    for name in sorted(result.reviews):
        lines += [f"### {name}", "", "\n".join(result.reviews[name]), ""]

    lines += [f"## Final Answer (by {result.leader})", "", result.answer, ""]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Committee transcript saved to: %s", filepath)
    return filepath
