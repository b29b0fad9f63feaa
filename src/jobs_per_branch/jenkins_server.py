"""
Access to the Jenkins server holding the jobs and views managed by jobs_per_branch.
"""
import contextlib
import json
import logging
import re
from urllib.parse import quote

import jenkins
import requests

from jobs_per_branch.errors import CollaboratorError
from jobs_per_branch.jenkins_config import CreateListViewConfig
from jobs_per_branch.jenkins_config import GetConfigForMissingJob
from jobs_per_branch.jenkins_config import IsDisabled
from jobs_per_branch.names import SanitizeBranchName


logger = logging.getLogger(__name__)


class IJenkinsServer(object):
    """
    Interface for the Jenkins server used during a synchronization.

    Read operations always reach the server. Implementations may decide what mutating operations
    actually do (see `ReadOnlyJenkinsServer`). All operations raise `CollaboratorError` on failure.
    """

    def GetJobNames(self):
        """
        :return list(unicode):
            Names of all jobs.
        """

    def GetViewNames(self, nested_view=None):
        """
        :param unicode|None nested_view:
            View containing the views to be listed; the root view if None.

        :return list(unicode):
        """

    def GetJobConfig(self, job_name):
        """
        :return unicode:
            config.xml of the job.
        """

    def CloneJobForBranch(self, concrete_job, template_jobs):
        """
        Creates `concrete_job` from its template job.

        :param ConcreteJob concrete_job:
        :param list(TemplateJob) template_jobs:
            All template jobs, used to replace references between template jobs in the config.
        """

    def EnableJob(self, job_name):
        pass

    def StartJob(self, concrete_job):
        pass

    def StopJob(self, job_name):
        pass

    def WipeOutWorkspace(self, job_name):
        """
        Fails while the job is building.
        """

    def DeleteJob(self, job_name):
        pass

    def CreateViewForBranch(self, branch_view, nested_view=None, view_regex=None):
        pass

    def DeleteView(self, view_name, nested_view=None):
        pass


@contextlib.contextmanager
def _TranslateErrors(operation, name=None):
    try:
        yield
    except (jenkins.JenkinsException, requests.exceptions.RequestException) as e:
        raise CollaboratorError(operation, name, e) from e


class JenkinsServer(IJenkinsServer):
    """
    `IJenkinsServer` backed by python-jenkins.

    :ivar jenkins.Jenkins jenkins_api:

    :ivar unicode|None folder_path:
        Jenkins folder holding the managed jobs ("/" separated), or None for the top level.
    """

    def __init__(self, url, username=None, password=None, folder_path=None):
        self.url = url
        self.folder_path = folder_path.strip("/") if folder_path else None
        self.jenkins_api = jenkins.Jenkins(url, username, password)

    def _GetFullName(self, job_name):
        if self.folder_path:
            return self.folder_path + "/" + job_name
        return job_name

    def _GetJobUrl(self, job_name, suffix):
        parts = self._GetFullName(job_name).split("/")
        path = "".join("job/%s/" % quote(part, safe="") for part in parts)
        return self.jenkins_api.server + path + suffix

    def _GetViewUrl(self, suffix, nested_view=None, view_name=None):
        views = nested_view.strip("/").split("/") if nested_view else []
        if view_name is not None:
            views.append(view_name)
        path = "".join("view/%s/" % quote(view, safe="") for view in views)
        return self.jenkins_api.server + path + suffix

    def _Post(self, url, data=None, headers=None):
        logger.debug("POST %s", url)
        return self.jenkins_api.jenkins_open(
            requests.Request("POST", url, data=data, headers=headers)
        )

    # ===============================================================================================
    # Read operations
    # ===============================================================================================
    def GetJobNames(self):
        with _TranslateErrors("list jobs in", self.folder_path or self.url):
            if self.folder_path:
                jobs = self.jenkins_api.get_job_info(self.folder_path).get("jobs", [])
            else:
                jobs = self.jenkins_api.get_jobs()
        return [job["name"] for job in jobs]

    def GetViewNames(self, nested_view=None):
        with _TranslateErrors("list views in", nested_view or self.url):
            if nested_view:
                url = self._GetViewUrl("api/json?tree=views[name]", nested_view)
                response = self.jenkins_api.jenkins_open(requests.Request("GET", url))
                views = json.loads(response).get("views", [])
            else:
                views = self.jenkins_api.get_views()
        return [view["name"] for view in views]

    def GetJobConfig(self, job_name):
        with _TranslateErrors("get config of", job_name):
            return self.jenkins_api.get_job_config(self._GetFullName(job_name))

    # ===============================================================================================
    # Mutating operations
    # ===============================================================================================
    def CloneJobForBranch(self, concrete_job, template_jobs):
        template_job = concrete_job.template_job
        template_config = self.GetJobConfig(template_job.job_name)
        config = GetConfigForMissingJob(template_config, concrete_job, template_jobs)

        full_name = self._GetFullName(concrete_job.job_name)
        with _TranslateErrors("clone job", concrete_job.job_name):
            # Copying (instead of creating from xml) gives plugins a chance to handle the copy.
            self.jenkins_api.copy_job(self._GetFullName(template_job.job_name), full_name)
            self.jenkins_api.reconfig_job(full_name, config)
            # Jenkins disables copied jobs; re-enable unless the template itself is disabled.
            self.jenkins_api.disable_job(full_name)
            if not IsDisabled(config):
                self.jenkins_api.enable_job(full_name)

    def EnableJob(self, job_name):
        with _TranslateErrors("enable job", job_name):
            self.jenkins_api.enable_job(self._GetFullName(job_name))

    def StartJob(self, concrete_job):
        logger.info("Starting job %s", concrete_job.job_name)
        with _TranslateErrors("start job", concrete_job.job_name):
            self.jenkins_api.build_job(self._GetFullName(concrete_job.job_name))

    def StopJob(self, job_name):
        full_name = self._GetFullName(job_name)
        with _TranslateErrors("stop job", job_name):
            last_build = self.jenkins_api.get_job_info(full_name).get("lastBuild")
            if last_build:
                self.jenkins_api.stop_build(full_name, last_build["number"])

    def WipeOutWorkspace(self, job_name):
        with _TranslateErrors("wipe out workspace of", job_name):
            self._Post(self._GetJobUrl(job_name, "doWipeOutWorkspace"))

    def DeleteJob(self, job_name):
        with _TranslateErrors("delete job", job_name):
            self.jenkins_api.delete_job(self._GetFullName(job_name))

    def CreateViewForBranch(self, branch_view, nested_view=None, view_regex=None):
        view_name = branch_view.view_name
        config = CreateListViewConfig(branch_view, view_regex)
        with _TranslateErrors("create view", view_name):
            if nested_view:
                url = self._GetViewUrl(
                    "createView?name=%s" % quote(view_name, safe=""), nested_view
                )
                self._Post(
                    url, data=config.encode("utf-8"), headers=jenkins.DEFAULT_HEADERS
                )
            else:
                self.jenkins_api.create_view(view_name, config)

    def DeleteView(self, view_name, nested_view=None):
        with _TranslateErrors("delete view", view_name):
            if nested_view:
                self._Post(self._GetViewUrl("doDelete", nested_view, view_name))
            else:
                self.jenkins_api.delete_view(view_name)


class ReadOnlyJenkinsServer(JenkinsServer):
    """
    A `JenkinsServer` that only reads from Jenkins, logging the changes it would make instead.

    Used in dry runs: the synchronization sees exactly the same data as in a real run.
    """

    def CloneJobForBranch(self, concrete_job, template_jobs):
        logger.info(
            "DRY RUN: would clone %s from %s",
            concrete_job.job_name,
            concrete_job.template_job.job_name,
        )

    def EnableJob(self, job_name):
        logger.info("DRY RUN: would enable %s", job_name)

    def StartJob(self, concrete_job):
        logger.info("DRY RUN: would start %s", concrete_job.job_name)

    def StopJob(self, job_name):
        logger.info("DRY RUN: would stop %s", job_name)

    def WipeOutWorkspace(self, job_name):
        logger.info("DRY RUN: would wipe out workspace of %s", job_name)

    def DeleteJob(self, job_name):
        logger.info("DRY RUN: would delete %s", job_name)

    def CreateViewForBranch(self, branch_view, nested_view=None, view_regex=None):
        logger.info("DRY RUN: would create view %s", branch_view.view_name)

    def DeleteView(self, view_name, nested_view=None):
        logger.info("DRY RUN: would delete view %s", view_name)


def CreateJenkinsServer(url, username=None, password=None, folder_path=None, dry_run=False):
    """
    :rtype: JenkinsServer
    """
    if dry_run:
        logger.info("DRY RUN! Not changing anything in Jenkins, only reading")
        server_class = ReadOnlyJenkinsServer
    else:
        server_class = JenkinsServer
    return server_class(url, username, password, folder_path)


def GetJobNameFilter(branch_name_regex, template_branch_name):
    """
    :return unicode|None:
        Regex matching job names for branches matching `branch_name_regex` or for the template
        branch, or None when there is no branch name regex.
    """
    if not branch_name_regex:
        return None
    return ".*%s$|.*%s$" % (
        SanitizeBranchName(branch_name_regex),
        re.escape(template_branch_name),
    )


class JobCatalog(object):
    """
    Provides the job and view names currently in Jenkins.

    :ivar IJenkinsServer jenkins_server:

    :ivar unicode|None job_name_filter:
        When given, only job names fully matching this regex are returned.
        .. seealso:: GetJobNameFilter
    """

    def __init__(self, jenkins_server, job_name_filter=None):
        self.jenkins_server = jenkins_server
        self.job_name_filter = job_name_filter

    def GetJobNames(self):
        job_names = self.jenkins_server.GetJobNames()
        if self.job_name_filter:
            job_names = [
                name for name in job_names if re.fullmatch(self.job_name_filter, name)
            ]
        return job_names

    def GetViewNames(self, nested_view=None):
        return self.jenkins_server.GetViewNames(nested_view)
