"""Korean status comments posted to GitHub issues."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Mapping, Optional

_PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")


class CommentType(StrEnum):
    START = "start"
    PROGRESS = "progress"
    COMPLETE = "complete"
    BLOCKED = "blocked"
    REVIEW = "review"


@dataclass(frozen=True)
class KoreanCommentTemplate:
    type: CommentType
    emoji: str
    title: str
    content: str


DEFAULT_KOREAN_TEMPLATES: dict[CommentType, KoreanCommentTemplate] = {
    CommentType.START: KoreanCommentTemplate(
        type=CommentType.START,
        emoji="🚀",
        title="작업을 시작합니다",
        content=(
            "이 이슈 해결을 위한 작업을 시작하겠습니다.\n"
            "{{status}}\n\n"
            "**작업 계획:**\n"
            "- 요구사항 분석 및 설계\n"
            "- 구현 및 테스트\n"
            "- 코드 리뷰 및 문서화\n\n"
            "진행 상황을 지속적으로 업데이트하겠습니다."
        ),
    ),
    CommentType.PROGRESS: KoreanCommentTemplate(
        type=CommentType.PROGRESS,
        emoji="⏳",
        title="작업이 진행 중입니다",
        content=(
            "현재 작업을 진행하고 있습니다.\n\n"
            "**현재 상황:** {{status}}\n\n"
            "**완료된 작업:**\n{{completed_tasks}}\n\n"
            "**다음 단계:**\n{{next_steps}}"
        ),
    ),
    CommentType.COMPLETE: KoreanCommentTemplate(
        type=CommentType.COMPLETE,
        emoji="✅",
        title="작업이 완료되었습니다",
        content=(
            "모든 작업이 성공적으로 완료되었습니다.\n\n"
            "**구현 내용:**\n{{implementation_details}}\n\n"
            "**테스트 결과:**\n{{test_results}}\n\n"
            "코드 리뷰를 부탁드립니다. 🙏"
        ),
    ),
    CommentType.BLOCKED: KoreanCommentTemplate(
        type=CommentType.BLOCKED,
        emoji="🚧",
        title="작업이 차단되었습니다",
        content=(
            "작업 진행 중 다음과 같은 문제가 발생했습니다:\n\n"
            "**차단 사유:**\n{{blocking_reason}}\n\n"
            "**해결 방안:**\n{{solution_approach}}\n\n"
            "지원이나 추가 정보가 필요합니다."
        ),
    ),
    CommentType.REVIEW: KoreanCommentTemplate(
        type=CommentType.REVIEW,
        emoji="👀",
        title="리뷰 요청",
        content=(
            "작업이 완료되어 리뷰를 요청드립니다.\n\n"
            "**변경 사항:**\n{{changes_summary}}\n\n"
            "**테스트 완료:**\n{{test_coverage}}\n\n"
            "**확인 사항:**\n{{review_points}}"
        ),
    ),
}


def replace_template_variables(content: str, variables: Optional[Mapping[str, str]]) -> str:
    """Substitute ``{{name}}`` placeholders and tidy the result.

    Placeholders without a value are removed, every line is stripped and
    blank lines are dropped.
    """
    values = variables or {}

    def _substitute(match: re.Match) -> str:
        value = values.get(match.group(1).strip())
        return "" if value is None else str(value)

    result = _PLACEHOLDER.sub(_substitute, content)
    lines = (line.strip() for line in result.split("\n"))
    return "\n".join(line for line in lines if line)


def generate_korean_comment(
    comment_type: CommentType | str,
    variables: Optional[Mapping[str, str]] = None,
    custom_templates: Optional[Mapping[CommentType, KoreanCommentTemplate]] = None,
) -> str:
    try:
        key = CommentType(comment_type)
    except ValueError:
        raise ValueError(f"Unknown comment type: {comment_type}") from None
    template = (custom_templates or DEFAULT_KOREAN_TEMPLATES).get(key)
    if template is None:
        raise ValueError(f"Unknown comment type: {comment_type}")
    content = replace_template_variables(template.content, variables)
    return f"{template.emoji} **{template.title}**\n\n{content}"


def format_bullet_list(items) -> str:
    return "\n".join(f"- {item}" for item in items or [])
