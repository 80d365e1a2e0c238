"""Post Korean workflow comments (start, progress, completion...) on GitHub issues."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from services.github_service import comment_on_issue
from services.korean_templates import CommentType, format_bullet_list, generate_korean_comment

DEFAULT_TEST_RESULTS = "모든 테스트 통과"
DEFAULT_SOLUTION_APPROACH = "추가 조사 및 해결 방안 모색 필요"
DEFAULT_TEST_COVERAGE = "단위 테스트 및 통합 테스트 완료"


def split_repository_id(repo_id: str) -> tuple[str, str]:
    owner, _, repo = (repo_id or "").partition("/")
    if not owner or not repo or "/" in repo:
        raise ValueError("Repository must be in the form owner/repo")
    return owner, repo


def post_korean_comment(
    token: str,
    repo_id: str,
    issue_number: int,
    comment_type: CommentType | str,
    variables: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    owner, repo = split_repository_id(repo_id)
    body = generate_korean_comment(comment_type, variables)
    try:
        comment = comment_on_issue(token, owner, repo, issue_number, body)
    except Exception:
        logging.error(
            "Failed to create Korean %s comment for issue #%s", comment_type, issue_number, exc_info=True
        )
        raise
    logging.info("Created Korean %s comment for issue #%s", comment_type, issue_number)
    return comment


def post_start_comment(
    token: str, repo_id: str, issue_number: int, task_title: Optional[str] = None
) -> Dict[str, Any]:
    variables = {}
    if task_title:
        variables["status"] = f"**현재 단계:** {task_title} 작업 분석 및 설계"
    return post_korean_comment(token, repo_id, issue_number, CommentType.START, variables)


def post_progress_comment(
    token: str,
    repo_id: str,
    issue_number: int,
    status: str,
    completed_tasks: Sequence[str] = (),
    next_steps: Sequence[str] = (),
) -> Dict[str, Any]:
    variables = {
        "status": status,
        "completed_tasks": format_bullet_list(completed_tasks),
        "next_steps": format_bullet_list(next_steps),
    }
    return post_korean_comment(token, repo_id, issue_number, CommentType.PROGRESS, variables)


def post_complete_comment(
    token: str,
    repo_id: str,
    issue_number: int,
    implementation_details: Sequence[str] = (),
    test_results: str = DEFAULT_TEST_RESULTS,
) -> Dict[str, Any]:
    variables = {
        "implementation_details": format_bullet_list(implementation_details),
        "test_results": test_results,
    }
    return post_korean_comment(token, repo_id, issue_number, CommentType.COMPLETE, variables)


def post_blocked_comment(
    token: str,
    repo_id: str,
    issue_number: int,
    blocking_reason: str,
    solution_approach: str = DEFAULT_SOLUTION_APPROACH,
) -> Dict[str, Any]:
    variables = {"blocking_reason": blocking_reason, "solution_approach": solution_approach}
    return post_korean_comment(token, repo_id, issue_number, CommentType.BLOCKED, variables)


def post_review_comment(
    token: str,
    repo_id: str,
    issue_number: int,
    changes_summary: str,
    test_coverage: str = DEFAULT_TEST_COVERAGE,
    review_points: Sequence[str] = (),
) -> Dict[str, Any]:
    variables = {
        "changes_summary": changes_summary,
        "test_coverage": test_coverage,
        "review_points": format_bullet_list(review_points),
    }
    return post_korean_comment(token, repo_id, issue_number, CommentType.REVIEW, variables)
