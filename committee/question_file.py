"""Read a committee request from a file: markdown with frontmatter, or chat JSON."""

import json
from pathlib import Path
from typing import Any

import frontmatter

from committee.models import Message


def _content_text(content: Any) -> str:
    """Flatten chat content: plain string, list of strings, or list of text parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        pieces: list[str] = []
        for item in content:
            if isinstance(item, str):
                pieces.append(item)
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                pieces.append(item["text"])
        return "".join(pieces)
    return ""


def parse_messages(raw: list[dict]) -> list[Message]:
    """Convert chat-completion style message dicts into Messages."""
    return [Message(role=str(m.get("role", "user")), content=_content_text(m.get("content"))) for m in raw]


def _parse_json(file_path: Path) -> tuple[list[Message], dict]:
    data = json.loads(file_path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        return parse_messages(data), {}
    if not isinstance(data, dict) or not isinstance(data.get("messages"), list):
        raise ValueError(f"{file_path}: expected a message list or an object with 'messages'")
    metadata = {}
    if data.get("model"):
        metadata["leader"] = data["model"]
    for key in ("members", "views"):
        if key in data:
            metadata[key] = data[key]
    return parse_messages(data["messages"]), metadata


def _parse_markdown(file_path: Path) -> tuple[list[Message], dict]:
    post = frontmatter.load(str(file_path))
    content = post.content.strip()
    metadata = dict(post.metadata)
    return [Message(role="user", content=content)] if content else [], metadata


def parse_file(file_path: Path) -> tuple[list[Message], dict]:
    """Parse a request file.

    Returns:
        (messages, metadata) where metadata may carry leader (str),
        members (str or list) and views (str or list). If the file has
        no such settings, metadata is {}.
    """
    if file_path.suffix.lower() == ".json":
        return _parse_json(file_path)
    return _parse_markdown(file_path)
