"""Reading and writing task markdown files with a front-matter block."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from models.task import TaskFile, TaskFileMetadata

FRONT_MATTER_DELIMITER = "---"
TASK_FILE_SUFFIX = ".md"
TEMPLATE_FILENAME = "task-template.md"
ILLEGAL_SEGMENT_TOKENS = ("..", "/", "\\")
BLOCK_INDENT = 2
# characters YAML also reads as line breaks; such values are written quoted
YAML_LINE_BREAKS = ("\r", "\x85", "\u2028", "\u2029")


def validate_path_segment(value: Any, label: str = "Repository") -> str:
    """Reject values that could escape the directory they are joined onto."""
    if not value or not isinstance(value, str):
        raise ValueError(f"{label} parameter is required and must be a string")
    if any(token in value for token in ILLEGAL_SEGMENT_TOKENS):
        raise ValueError(f"Invalid {label.lower()} name: contains illegal characters")
    return value


def tasks_dir(root: str | Path, repository: str) -> Path:
    validate_path_segment(repository)
    return Path(root) / "repositories" / repository / "tasks"


def task_path(root: str | Path, repository: str, task_id: str) -> Path:
    validate_path_segment(task_id, "Task ID")
    return tasks_dir(root, repository) / f"{task_id}{TASK_FILE_SUFFIX}"


def _render_block(key: str, value: str) -> str:
    # explicit indentation keeps leading spaces; chomping keeps trailing newlines
    body = value.rstrip("\n")
    trailing = len(value) - len(body)
    chomping = "-" if trailing == 0 else ("" if trailing == 1 else "+")
    indent = " " * BLOCK_INDENT
    lines = [f"{indent}{line}" if line else "" for line in body.split("\n")]
    lines.extend([""] * max(trailing - 1, 0))
    return "\n".join([f"{key}: |{BLOCK_INDENT}{chomping}", *lines])


def _render_value(key: str, value: Any) -> str:
    if isinstance(value, str) and "\n" in value:
        if any(char in value for char in YAML_LINE_BREAKS):
            return f"{key}: {json.dumps(value)}"
        if value.strip("\n"):
            return _render_block(key, value)
    return f"{key}: {json.dumps(value, ensure_ascii=False)}"


def render_front_matter(metadata: dict[str, Any]) -> str:
    lines = [_render_value(key, value) for key, value in metadata.items() if value is not None]
    return "\n".join([FRONT_MATTER_DELIMITER, *lines, FRONT_MATTER_DELIMITER])


def render_task_file(task_file: TaskFile) -> str:
    """Render ``task_file`` as front-matter, a blank line, then the markdown body."""
    return f"{render_front_matter(task_file.metadata.to_dict())}\n\n{task_file.content}"


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    lines = text.split("\n")
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return {}, text
    for index in range(1, len(lines)):
        if lines[index].rstrip() == FRONT_MATTER_DELIMITER:
            block = "\n".join(lines[1:index])
            body = "\n".join(lines[index + 1 :])
            break
    else:
        raise ValueError("Front-matter block is not terminated")
    try:
        data = yaml.safe_load(f"{block}\n") if block.strip() else {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid front-matter block: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Front-matter block must be a mapping")
    # hand-written files may carry unquoted timestamps
    for key, value in data.items():
        if isinstance(value, (date, datetime)):
            data[key] = value.isoformat()
    return data, body


def parse_task_file(text: str, repository: Optional[str] = None) -> TaskFile:
    """Parse file text into a TaskFile, filling a missing repository field."""
    data, body = split_front_matter(text)
    if repository and not data.get("repository"):
        data["repository"] = repository
    return TaskFile(metadata=TaskFileMetadata.from_dict(data), content=body.strip())


def read_task_file(path: Path, repository: Optional[str] = None) -> TaskFile:
    return parse_task_file(path.read_text(encoding="utf-8"), repository)


def list_task_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        path
        for path in directory.iterdir()
        if path.suffix == TASK_FILE_SUFFIX and path.name != TEMPLATE_FILENAME and path.is_file()
    )
