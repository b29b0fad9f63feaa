# mypy: disallow-untyped-defs
import json
import os
import traceback
from http import HTTPStatus
from typing import Dict
from typing import Tuple
from typing import Union

import flask
from dotenv import load_dotenv

from jobs_per_branch import get_version_title
from jobs_per_branch.sync import SyncReport


app = flask.Flask("jobs_per_branch")
load_dotenv(dotenv_path=os.environ.get("JOBS_PER_BRANCH_DOTENV"))
if not app.debug:
    app.logger.setLevel("INFO")
app.logger.info(f"Initializing Server App - {get_version_title()}")


@app.route("/", methods=["GET", "POST"])
def index() -> Union[str, Tuple[str, int]]:
    """
    Synchronization end-point, meant to be called by push hooks of the git host.

    The payload is not inspected: any push may create or delete a branch, so every call does a
    full synchronization with settings from "JPB_*" environment variables.
    """
    request = flask.request
    app.logger.info(
        "\n"
        + f"Received {request}\n"
        + "Headers:\n"
        + json.dumps(dict(request.headers), indent=2, sort_keys=True)
    )
    if request.method == "GET":
        # Useful to check which version is up ("Test Connection" in most git hosts).
        app.logger.info("I'm alive")
        return get_version_title()

    try:
        report = _process_sync_request(dict(os.environ))
    except Exception:
        app.logger.exception("Unexpected exception")
        return _process_sync_error(), HTTPStatus.INTERNAL_SERVER_ERROR

    message = "\n".join(report.GetLines())
    app.logger.info(f"Output:\n{message}")
    if report.HasErrors():
        return message, HTTPStatus.INTERNAL_SERVER_ERROR
    return message


def _process_sync_request(environ: Dict[str, str]) -> SyncReport:
    """
    Synchronize Jenkins with the repository configured in the environment.
    """
    from jobs_per_branch.config import CreateSettings
    from jobs_per_branch.config import LoadConfigFromEnvironment
    from jobs_per_branch.sync import CreateJobManager

    values = LoadConfigFromEnvironment(environ)
    values.setdefault("template_branch_name", "master")
    options, settings = CreateSettings(values)
    return CreateJobManager(options, settings).SyncWithRepo()


def _process_sync_error() -> str:
    error_traceback = traceback.format_exc()
    lines = [
        f"ERROR processing request: {flask.request}",
        "",
        error_traceback,
    ]
    return "\n".join(lines)
