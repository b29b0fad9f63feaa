"""
Synchronizes Jenkins with the branches of a git repository.
"""
import logging
from typing import List
from typing import Tuple

import attr

from jobs_per_branch.job_sync import JobSynchronizer
from jobs_per_branch.job_sync import ReadOnlyWorkspaceCleaner
from jobs_per_branch.job_sync import WorkspaceCleaner
from jobs_per_branch.names import FindTemplateJobs
from jobs_per_branch.view_sync import ViewSynchronizer


logger = logging.getLogger(__name__)


@attr.s(auto_attribs=True)
class SyncReport(object):
    """
    What a synchronization did. Names are listed in the order the operations happened.
    """

    created_jobs: List[str] = attr.Factory(list)
    deleted_jobs: List[str] = attr.Factory(list)
    created_views: List[str] = attr.Factory(list)
    deleted_views: List[str] = attr.Factory(list)
    # (job or view name, error message) for every operation that failed.
    errors: List[Tuple[str, str]] = attr.Factory(list)

    def AddError(self, name, error):
        self.errors.append((name, str(error)))

    def HasErrors(self):
        return bool(self.errors)

    def GetLines(self):
        """
        :return list(unicode):
            Human readable summary, one line per change or error.
        """
        lines = []
        lines.extend("NEW - %s" % x for x in self.created_jobs)
        lines.extend("DEL - %s" % x for x in self.deleted_jobs)
        lines.extend("NEW VIEW - %s" % x for x in self.created_views)
        lines.extend("DEL VIEW - %s" % x for x in self.deleted_views)
        lines.extend("ERR - %s: %s" % (name, message) for name, message in self.errors)
        return lines


class JobManager(object):
    """
    Sequences a synchronization: branches, template jobs, jobs and finally views.
    """

    def __init__(
        self,
        options,
        branch_catalog,
        job_catalog,
        jenkins_server,
        workspace_cleaner=None,
    ):
        """
        :param SyncOptions options:
        :param BranchCatalog branch_catalog:
        :param JobCatalog job_catalog:
        :param IJenkinsServer jenkins_server:
        :param WorkspaceCleaner|None workspace_cleaner:
        """
        self.options = options
        self.branch_catalog = branch_catalog
        self.job_catalog = job_catalog
        self.job_synchronizer = JobSynchronizer(jenkins_server, options, workspace_cleaner)
        self.view_synchronizer = ViewSynchronizer(jenkins_server, options, job_catalog)

    def SyncWithRepo(self):
        """
        :rtype: SyncReport

        :raises ConfigurationError:
            If there are no template jobs. Nothing is changed in that case.
        """
        all_branch_names = self.branch_catalog.GetBranchNames()
        all_job_names = self.job_catalog.GetJobNames()
        logger.info(
            "Found %d branches and %d jobs", len(all_branch_names), len(all_job_names)
        )

        template_jobs = FindTemplateJobs(
            all_job_names,
            self.options.template_job_prefix,
            self.options.template_branch_name,
        )
        logger.info("Template jobs: %s", [t.job_name for t in template_jobs])

        report = SyncReport()
        self.job_synchronizer.SyncJobs(all_branch_names, all_job_names, template_jobs, report)
        if not self.options.no_views:
            self.view_synchronizer.SyncViews(all_branch_names, report)
        return report


def CreateJobManager(options, settings):
    """
    Creates a `JobManager` talking to the real Jenkins server and git repository.

    In dry runs Jenkins and the workspace directory are only read from.

    :param SyncOptions options:
    :param ServerSettings settings:
    :rtype: JobManager
    """
    from jobs_per_branch.jenkins_server import CreateJenkinsServer
    from jobs_per_branch.jenkins_server import GetJobNameFilter
    from jobs_per_branch.jenkins_server import JobCatalog
    from jobs_per_branch.repository import BranchCatalog
    from jobs_per_branch.repository import GitRepository

    jenkins_server = CreateJenkinsServer(
        settings.jenkins_url,
        settings.username,
        settings.password,
        settings.folder_path,
        dry_run=options.dry_run,
    )
    job_catalog = JobCatalog(
        jenkins_server,
        GetJobNameFilter(options.branch_name_regex, options.template_branch_name),
    )
    branch_catalog = BranchCatalog(
        GitRepository(url=settings.git_url, branch_name_regex=options.branch_name_regex)
    )
    cleaner_class = ReadOnlyWorkspaceCleaner if options.dry_run else WorkspaceCleaner
    return JobManager(
        options,
        branch_catalog,
        job_catalog,
        jenkins_server,
        cleaner_class(options.workspace_path),
    )
