import logging
import os

import click


def _EchoReport(report):
    for job in report.created_jobs:
        click.secho("NEW", fg="green", nl=False)
        click.secho(" - ", nl=False)
        click.secho(job)
    for job in report.deleted_jobs:
        click.secho("DEL", fg="red", nl=False)
        click.secho(" - ", nl=False)
        click.secho(job)
    for view in report.created_views:
        click.secho("NEW VIEW", fg="green", nl=False)
        click.secho(" - ", nl=False)
        click.secho(view)
    for view in report.deleted_views:
        click.secho("DEL VIEW", fg="red", nl=False)
        click.secho(" - ", nl=False)
        click.secho(view)
    for name, message in report.errors:
        click.secho("ERR", fg="red", bold=True, nl=False)
        click.secho(" - ", nl=False)
        click.secho(f"{name}: {message}")


@click.command()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    envvar="JPB_CONFIG",
    help="YAML file with default values for the options below.",
)
@click.option("--jenkins-url", envvar="JPB_JENKINS_URL", help="Jenkins URL.")
@click.option("--git-url", envvar="JPB_GIT_URL", help="Clone URL of the git repository.")
@click.option("--username", envvar="JPB_USERNAME", help="Jenkins username.")
@click.option("--password", envvar="JPB_PASSWORD", help="Jenkins password or API token.")
@click.option("--folder-path", envvar="JPB_FOLDER_PATH", help="Jenkins folder holding the jobs.")
@click.option(
    "--template-job-prefix",
    envvar="JPB_TEMPLATE_JOB_PREFIX",
    help="Prefix of template and managed jobs.",
)
@click.option(
    "--template-branch-name",
    envvar="JPB_TEMPLATE_BRANCH_NAME",
    help='Branch built by template jobs (default "master").',
)
@click.option(
    "--branch-name-regex",
    envvar="JPB_BRANCH_NAME_REGEX",
    help="Only branches matching this regex get jobs.",
)
@click.option("--nested-view", envvar="JPB_NESTED_VIEW", help="View containing branch views.")
@click.option("--view-regex", envvar="JPB_VIEW_REGEX", help="Include regex of branch views.")
@click.option(
    "--workspace-path",
    envvar="JPB_WORKSPACE_PATH",
    help="Directory of job workspaces, cleaned up when deleting jobs.",
)
@click.option(
    "--dry-run/--no-dry-run",
    default=None,
    envvar="JPB_DRY_RUN",
    help="Only show what would change.",
)
@click.option(
    "--no-views/--views",
    default=None,
    envvar="JPB_NO_VIEWS",
    help="Do not synchronize views.",
)
@click.option(
    "--no-delete/--delete",
    default=None,
    envvar="JPB_NO_DELETE",
    help="Do not delete jobs or views.",
)
@click.option(
    "--start-on-create/--no-start-on-create",
    default=None,
    envvar="JPB_START_ON_CREATE",
    help="Start jobs once created.",
)
@click.option(
    "--enable-job/--no-enable-job",
    default=None,
    envvar="JPB_ENABLE_JOB",
    help="Enable jobs once created.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug messages.")
def sync(config_file, verbose, **cli_values):
    """
    Synchronize Jenkins jobs and views with the branches of a repository.

    A job is created for every branch from each template job (jobs named
    "<prefix>-<name>-<template branch>"), and jobs of branches that no longer
    exist are deleted.
    """
    from jobs_per_branch.config import CreateSettings
    from jobs_per_branch.config import LoadConfigFile
    from jobs_per_branch.errors import ConfigurationError
    from jobs_per_branch.errors import JobsPerBranchError
    from jobs_per_branch.sync import CreateJobManager

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        values = LoadConfigFile(config_file) if config_file else {}
        values.setdefault("template_branch_name", "master")
        values.update({k: v for k, v in cli_values.items() if v is not None})
        if values.get("username") and not values.get("password"):
            values["password"] = click.prompt("Password", hide_input=True)
        options, settings = CreateSettings(values)

        click.secho("Synchronizing ", nl=False)
        click.secho(settings.jenkins_url, fg="white", nl=False)
        click.secho(" with ", nl=False)
        click.secho(settings.git_url, fg="white")

        report = CreateJobManager(options, settings).SyncWithRepo()
    except ConfigurationError as e:
        click.secho(str(e), fg="red", err=True)
        raise SystemExit(2)
    except JobsPerBranchError as e:
        click.secho(str(e), fg="red", err=True)
        raise SystemExit(1)

    _EchoReport(report)
    if report.HasErrors():
        raise SystemExit(1)
    click.secho("OK", fg="green")


try:
    from ._version import version
except ImportError:
    version = "DEV"


@click.group(name="jobs_per_branch")
@click.version_option(version=version)
def jobs_per_branch():
    """
    Keeps Jenkins jobs in sync with the branches of a git repository.
    """
    from dotenv import load_dotenv

    load_dotenv(dotenv_path=os.environ.get("JOBS_PER_BRANCH_DOTENV"))


jobs_per_branch.add_command(sync)
