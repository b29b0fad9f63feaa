import logging
import os
import shutil
import time

from jobs_per_branch.errors import CollaboratorError
from jobs_per_branch.errors import DeletionRetryExhausted
from jobs_per_branch.names import GetExpectedJobs
from jobs_per_branch.names import GetManagedJobNames


logger = logging.getLogger(__name__)


class WorkspaceCleaner(object):
    """
    Removes workspace directories of deleted jobs from disk.

    :ivar unicode|None workspace_path:
        Directory containing one workspace directory per job. Nothing is removed if None.
    """

    def __init__(self, workspace_path=None):
        self.workspace_path = workspace_path

    def DeleteDirectory(self, job_name):
        if not self.workspace_path:
            return
        directory = os.path.join(self.workspace_path, job_name)
        if os.path.isdir(directory):
            logger.info("Deleting deprecated dir: %s", directory)
            try:
                shutil.rmtree(directory)
            except OSError as e:
                raise CollaboratorError("delete directory", directory, e) from e


class ReadOnlyWorkspaceCleaner(WorkspaceCleaner):
    def DeleteDirectory(self, job_name):
        if not self.workspace_path:
            return
        directory = os.path.join(self.workspace_path, job_name)
        if os.path.isdir(directory):
            logger.info("DRY RUN: would delete dir %s", directory)


def ComputeMissingJobs(expected_jobs, current_job_names):
    """
    :return list(ConcreteJob):
        Expected jobs with no current job of the same name, ignoring case.
    """
    lowercase_current_job_names = {name.lower() for name in current_job_names}
    return [
        job
        for job in expected_jobs
        if job.job_name.lower() not in lowercase_current_job_names
    ]


def ComputeDeprecatedJobNames(current_job_names, expected_jobs):
    """
    :return list(unicode):
        Current job names that are not expected anymore.

    .. note::
        Unlike `ComputeMissingJobs` this comparison is case sensitive: a job "App-Foo" is not
        recreated when "app-foo" is expected, but it is still considered deprecated.
    """
    expected_job_names = {job.job_name for job in expected_jobs}
    return [name for name in current_job_names if name not in expected_job_names]


class JobSynchronizer(object):
    """
    Creates jobs for new branches from template jobs, and deletes jobs of branches that are gone.
    """

    # Seconds given to a stopped job before trying to wipe out its workspace again.
    WIPE_RETRY_SLEEP = 15

    def __init__(self, jenkins_server, options, workspace_cleaner=None):
        """
        :param IJenkinsServer jenkins_server:

        :param SyncOptions options:

        :param WorkspaceCleaner|None workspace_cleaner:
            Defaults to a cleaner for `options.workspace_path`.
        """
        self.jenkins_server = jenkins_server
        self.options = options
        if workspace_cleaner is None:
            workspace_cleaner = WorkspaceCleaner(options.workspace_path)
        self.workspace_cleaner = workspace_cleaner

    def SyncJobs(self, all_branch_names, all_job_names, template_jobs, report):
        """
        :param list(unicode) all_branch_names:
        :param list(unicode) all_job_names:
        :param list(TemplateJob) template_jobs:
        :param SyncReport report:
            Receives created/deleted job names and errors.
        """
        template_branch_name = self.options.template_branch_name
        non_template_branch_names = [
            name for name in all_branch_names if name != template_branch_name
        ]
        current_job_names = GetManagedJobNames(
            all_job_names,
            template_jobs,
            non_template_branch_names,
            self.options.template_job_prefix,
            self.options.branch_name_regex,
        )
        expected_jobs = GetExpectedJobs(template_jobs, non_template_branch_names)

        self.CreateMissingJobs(expected_jobs, current_job_names, template_jobs, report)
        if not self.options.no_delete:
            self.DeleteDeprecatedJobs(
                ComputeDeprecatedJobNames(current_job_names, expected_jobs), report
            )

    def CreateMissingJobs(self, expected_jobs, current_job_names, template_jobs, report):
        for missing_job in ComputeMissingJobs(expected_jobs, current_job_names):
            logger.info(
                "Creating missing job: %s from %s",
                missing_job.job_name,
                missing_job.template_job.job_name,
            )
            try:
                self.jenkins_server.CloneJobForBranch(missing_job, template_jobs)
                if self.options.enable_job:
                    self.jenkins_server.EnableJob(missing_job.job_name)
                if self.options.start_on_create:
                    self.jenkins_server.StartJob(missing_job)
            except CollaboratorError as e:
                logger.exception("Could not create job %s", missing_job.job_name)
                report.AddError(missing_job.job_name, e)
            else:
                report.created_jobs.append(missing_job.job_name)

    def DeleteDeprecatedJobs(self, deprecated_job_names, report):
        if not deprecated_job_names:
            return
        logger.info("Deleting deprecated jobs:\n\t%s", "\n\t".join(deprecated_job_names))
        for job_name in deprecated_job_names:
            try:
                self.DeleteDeprecatedJob(job_name, report)
            except CollaboratorError as e:
                logger.exception("Could not delete job %s", job_name)
                report.AddError(job_name, e)
            else:
                report.deleted_jobs.append(job_name)

    def DeleteDeprecatedJob(self, job_name, report=None):
        """
        Wipes out the workspace of a job and deletes it.

        If wiping out fails (usually because the job is building), the job is stopped and wiping
        out is tried once more after `WIPE_RETRY_SLEEP` seconds.

        :param SyncReport|None report:
            Receives the error when the job is deleted but its workspace directory is not. Such
            an error is only logged when None.

        :raises DeletionRetryExhausted:
            If the second attempt to wipe out the workspace fails. The job is not deleted.
        """
        try:
            self.jenkins_server.WipeOutWorkspace(job_name)
        except CollaboratorError:
            logger.warning(
                "Attempting to stop %s since wiping out the workspace failed", job_name
            )
            self.jenkins_server.StopJob(job_name)
            logger.warning(
                "Giving %s %s seconds before wiping out the workspace again",
                job_name,
                self.WIPE_RETRY_SLEEP,
            )
            time.sleep(self.WIPE_RETRY_SLEEP)
            try:
                self.jenkins_server.WipeOutWorkspace(job_name)
            except CollaboratorError as e:
                raise DeletionRetryExhausted(job_name, e) from e

        self.jenkins_server.DeleteJob(job_name)
        try:
            self.workspace_cleaner.DeleteDirectory(job_name)
        except CollaboratorError as e:
            logger.exception("Deleted %s but not its workspace directory", job_name)
            if report is not None:
                report.AddError(job_name, e)
