"""Flask CLI commands for tasks and issue comments.

Usage:
> flask tasks list --repository workflow
> flask tasks create --title "Fix bug" --content "Details"
> flask tasks status task-1700000000000-abc1234 completed
> flask comment preview progress --var status=Testing
"""

import click
from flask import current_app
from flask.cli import AppGroup

from models.task import TaskStatus
from services.backend_client import BackendError
from services.korean_templates import CommentType, generate_korean_comment
from services.task_store import TaskNotFoundError

tasks_cli = AppGroup("tasks", help="Manage task files through the backend API.")
comment_cli = AppGroup("comment", help="Korean GitHub issue comments.")


def _task_store():
    return current_app.extensions["task_store"]


@tasks_cli.command("list")
@click.option("--repository", "-r", default=None, help="Repository name.")
@click.option("--refresh", is_flag=True, help="Bypass the task cache.")
def list_tasks(repository, refresh):
    try:
        tasks = _task_store().load_tasks_from_epics(repository, force_refresh=refresh)
    except BackendError as error:
        raise click.ClickException(str(error)) from error
    if not tasks:
        click.echo("No tasks found.")
        return
    for task in tasks:
        click.echo(f"{task.id}\t{task.status}\t{task.title}")


@tasks_cli.command("create")
@click.option("--title", required=True)
@click.option("--content", default="", help="Markdown body of the task.")
@click.option("--repository", "-r", default=None)
@click.option("--epic", default=None)
@click.option("--branch", default=None)
@click.option("--github-issue", type=int, default=None)
def create_task(title, content, repository, epic, branch, github_issue):
    metadata = {
        "title": title,
        "status": TaskStatus.PENDING,
        "epic": epic,
        "branch": branch,
        "github_issue": github_issue,
    }
    try:
        task_file = _task_store().create_task_file(
            {key: value for key, value in metadata.items() if value is not None},
            content,
            repository,
        )
    except (BackendError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    click.echo(task_file.metadata.id)


@tasks_cli.command("status")
@click.argument("task_id")
@click.argument("status", type=click.Choice([status.value for status in TaskStatus]))
@click.option("--repository", "-r", default=None)
def set_status(task_id, status, repository):
    try:
        task_file = _task_store().update_task_file(task_id, {"status": status}, repository=repository)
    except TaskNotFoundError as error:
        raise click.ClickException(str(error)) from error
    except BackendError as error:
        raise click.ClickException(str(error)) from error
    click.echo(f"{task_file.metadata.id} is now {task_file.metadata.status}")


@comment_cli.command("preview")
@click.argument("comment_type", type=click.Choice([kind.value for kind in CommentType]))
@click.option("--var", "variables", multiple=True, help="Template variable as key=value.")
def preview_comment(comment_type, variables):
    values = {}
    for item in variables:
        key, separator, value = item.partition("=")
        if not separator:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--var")
        values[key] = value.replace("\\n", "\n")
    click.echo(generate_korean_comment(comment_type, values))
