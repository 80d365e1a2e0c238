import logging
import os

from dotenv import load_dotenv
from flask import Flask, flash, g, jsonify, request, session

from commands import comment_cli, tasks_cli
from routes import safe_redirect
from routes.activity import activity_bp
from routes.github import github_bp
from routes.tasks import tasks_bp
from routes.work_logs import work_logs_bp
from services.activity_log import ActivityLogger
from services.backend_client import BackendClient
from services.i18n import (
    LOCALE_SESSION_KEY,
    get_initial_locale,
    get_messages,
    is_locale_supported,
)
from services.task_store import TaskFileStore
from services.work_log import WorkLogClient
from utils.file_lock import FileLockRegistry

load_dotenv()

# Initialize Flask app
app = Flask(__name__)
app.config.from_mapping(
    SECRET_KEY=os.environ.get("SECRET_KEY", "dev-workbench-secret"),
    TASKS_ROOT=os.environ.get("WORKBENCH_TASKS_ROOT", os.path.join(".claude", "epics")),
    LOGS_ROOT=os.environ.get("WORKBENCH_LOGS_ROOT", os.path.join(".claude", "logs")),
    ACTIVITY_LOG_PATH=os.environ.get(
        "WORKBENCH_ACTIVITY_LOG", os.path.join(".claude", "activity", "activity-logs.json")
    ),
    DEFAULT_REPOSITORY=os.environ.get("REPOSITORY_NAME", "workflow"),
    TASK_CACHE_TTL=float(os.environ.get("WORKBENCH_TASK_CACHE_TTL", "1.0")),
    BACKEND_API_BASE=os.environ.get("WORKBENCH_API_BASE", "http://localhost:5000/api"),
    BACKEND_TIMEOUT=float(os.environ.get("WORKBENCH_API_TIMEOUT", "10")),
    DEFAULT_LOCALE=os.environ.get("WORKBENCH_DEFAULT_LOCALE", "ko"),
    LOG_LEVEL=os.environ.get("LOG_LEVEL", "INFO"),
)

logging.basicConfig(
    level=app.config["LOG_LEVEL"],
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def init_services(flask_app, backend=None):
    """Build the shared task store, work-log client, activity log and file locks.

    ``backend`` replaces the HTTP transport to the task and work-log API.
    """
    if backend is None:
        backend = BackendClient(
            flask_app.config["BACKEND_API_BASE"], timeout=flask_app.config["BACKEND_TIMEOUT"]
        )
    work_log = WorkLogClient(backend)
    file_locks = FileLockRegistry()
    flask_app.extensions["file_locks"] = file_locks
    flask_app.extensions["activity_log"] = ActivityLogger(
        flask_app.config["ACTIVITY_LOG_PATH"], file_locks=file_locks
    )
    flask_app.extensions["work_log"] = work_log
    flask_app.extensions["task_store"] = TaskFileStore(
        backend,
        cache_ttl=flask_app.config["TASK_CACHE_TTL"],
        work_log=work_log,
        default_repository=flask_app.config["DEFAULT_REPOSITORY"],
    )


init_services(app)
app.register_blueprint(tasks_bp)
app.register_blueprint(work_logs_bp)
app.register_blueprint(github_bp)
app.register_blueprint(activity_bp)
app.cli.add_command(tasks_cli)
app.cli.add_command(comment_cli)


@app.route("/")
def home():
    return jsonify(
        {
            "name": "workbench",
            "locale": g.locale,
            "repository": app.config["DEFAULT_REPOSITORY"],
        }
    )


# Locale
# ------------------------------
@app.before_request
def load_locale():
    """Resolve the UI locale: session preference, then Accept-Language, then the default."""
    languages = [language for language, _ in request.accept_languages]
    g.locale = get_initial_locale(
        session.get(LOCALE_SESSION_KEY), languages, app.config["DEFAULT_LOCALE"]
    )


def set_locale(selected_locale: str) -> bool:
    """
    Stores the locale preference in the session.

    Parameters:
        selected_locale (str): The locale to be set.

    Returns:
        bool: True if the locale is supported and stored, False otherwise.
    """
    if not is_locale_supported(selected_locale):
        return False
    session[LOCALE_SESSION_KEY] = selected_locale
    g.locale = selected_locale
    return True


@app.route("/change_locale/<string:locale>")
def change_locale(locale):
    if not set_locale(locale):
        flash("Invalid locale", "error")
    return safe_redirect(request.referrer, "home")


@app.route("/api/i18n/messages")
def locale_messages():
    locale = request.args.get("locale")
    if not is_locale_supported(locale):
        locale = g.locale
    return jsonify({"locale": locale, "messages": get_messages(locale)})


if __name__ == "__main__":
    app.run(debug=True)
