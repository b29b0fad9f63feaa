"""
Naming conventions that relate Jenkins jobs to git branches.

A template job is named "<base job name>-<template branch>", for instance "app-build-master".
For every other branch a concrete job is cloned from it, named "<base job name>-<branch>" with
slashes in the branch name replaced by underscores (e.g. "app-build-feature_login").
"""
import logging
import re
from typing import List
from typing import Optional

import attr

from jobs_per_branch.errors import ConfigurationError


logger = logging.getLogger(__name__)


def SanitizeBranchName(branch_name):
    """
    :param unicode branch_name:
        A git branch name, such as "feature/login"

    :return unicode:
        The branch name as it is used in job and view names, e.g. "feature_login".
    """
    return branch_name.replace("/", "_")


@attr.s(auto_attribs=True, frozen=True)
class TemplateJob(object):
    """
    A Jenkins job used as source for the jobs of every other branch.
    """

    # Full job name, e.g. "app-build-master".
    job_name: str
    # Job name without the branch suffix, e.g. "app-build".
    base_job_name: str
    # Branch the template job builds, e.g. "master".
    template_branch_name: str

    def GetJobNameForBranch(self, branch_name):
        return self.base_job_name + "-" + SanitizeBranchName(branch_name)

    def CreateConcreteJob(self, branch_name):
        """
        :rtype: ConcreteJob
        """
        return ConcreteJob(
            job_name=self.GetJobNameForBranch(branch_name),
            branch_name=branch_name,
            template_job=self,
        )


@attr.s(auto_attribs=True, frozen=True)
class ConcreteJob(object):
    """
    The job that should exist for a branch, cloned from a `TemplateJob`.
    """

    job_name: str
    branch_name: str
    template_job: TemplateJob


@attr.s(auto_attribs=True, frozen=True)
class BranchView(object):
    """
    The list view grouping the jobs of a branch.
    """

    branch_name: str
    template_job_prefix: Optional[str] = None

    @property
    def safe_branch_name(self):
        return SanitizeBranchName(self.branch_name)

    @property
    def view_name(self):
        if self.template_job_prefix:
            return self.template_job_prefix + "-" + self.safe_branch_name
        return self.safe_branch_name


def GetTemplateJobRegex(template_job_prefix, template_branch_name):
    """
    :return unicode:
        Regex matching template job names. The first group is the base job name and the second
        one the template branch name.
    """
    branch = re.escape(template_branch_name)
    if template_job_prefix:
        prefix = re.escape(template_job_prefix)
        return r"^(%s(?:-[^-]*)?(?:-[^-]*)?)-(%s)$" % (prefix, branch)
    return r"^([^-]*(?:-[^-]*)?)-(%s)$" % (branch,)


def FindTemplateJobs(all_job_names, template_job_prefix, template_branch_name):
    """
    Finds the template jobs among all jobs in Jenkins.

    :param list(unicode) all_job_names:
        Names of all jobs currently in Jenkins.

    :param unicode|None template_job_prefix:
        Prefix shared by all managed jobs, e.g. "app".

    :param unicode template_branch_name:
        Branch built by template jobs, e.g. "master".

    :rtype: list(TemplateJob)

    :raises ConfigurationError:
        If no job matches the template pattern: there would be nothing to clone from.
    """
    regex = GetTemplateJobRegex(template_job_prefix, template_branch_name)
    template_jobs = []
    for job_name in all_job_names:
        match = re.match(regex, job_name)
        if match is None:
            continue
        base_job_name, branch_name = match.groups()
        template_jobs.append(
            TemplateJob(
                job_name=match.group(0),
                base_job_name=base_job_name,
                template_branch_name=branch_name,
            )
        )

    if not template_jobs:
        raise ConfigurationError(
            "Unable to find any jobs matching template regex: %s\n"
            "You need at least one job to match the template job prefix and template branch "
            "name suffix" % regex
        )
    return template_jobs


def GetBranchAlternation(branch_names):
    """
    Creates a regex alternation matching any of the given branch names, either as they are in
    git or sanitized as they appear in job names.

    Names are escaped, so a branch like "feature/a.b" only matches itself.
    """
    alternatives = []
    for branch_name in branch_names:
        for name in (branch_name, SanitizeBranchName(branch_name)):
            escaped = re.escape(name)
            if escaped not in alternatives:
                alternatives.append(escaped)
    return "|".join(alternatives)


def GetManagedJobNames(
    all_job_names: List[str],
    template_jobs: List[TemplateJob],
    non_template_branch_names: List[str],
    template_job_prefix: Optional[str],
    branch_name_regex: Optional[str],
) -> List[str]:
    """
    Finds jobs that were created from template jobs, and as such can be deleted once their branch
    is gone.

    A job is managed when:
    - it is named "<prefix>-<something>-<branch>" for one of `non_template_branch_names`
      (without a prefix, the base name may have one or two parts, as for template jobs);
    - it is not a template job itself;
    - it starts with the base name of a template job;
    - its third "-" separated token matches `branch_name_regex` (slashes replaced by
      underscores), when a regex is configured.
    """
    if not non_template_branch_names:
        return []

    branch_alternation = GetBranchAlternation(non_template_branch_names)
    logger.debug("Branch alternation: (%s)", branch_alternation)
    if template_job_prefix:
        regex = r"^(%s-[^-]*)-(%s)$" % (re.escape(template_job_prefix), branch_alternation)
    else:
        regex = r"^([^-]*(?:-[^-]*)?)-(%s)$" % (branch_alternation,)

    template_job_names = {t.job_name for t in template_jobs}
    candidates = [
        job_name
        for job_name in all_job_names
        if re.match(regex, job_name) and job_name not in template_job_names
    ]

    token_regex = None
    if branch_name_regex:
        token_regex = re.compile(SanitizeBranchName(branch_name_regex))

    def _IsTemplateDriven(job_name):
        if not any(job_name.startswith(t.base_job_name) for t in template_jobs):
            return False
        if token_regex is None:
            return True
        tokens = [token for token in job_name.split("-") if token]
        return len(tokens) > 2 and token_regex.fullmatch(tokens[2]) is not None

    return [job_name for job_name in candidates if _IsTemplateDriven(job_name)]


def GetConcreteJobName(template_job, branch_name):
    return template_job.GetJobNameForBranch(branch_name)


def GetExpectedJobs(template_jobs, branch_names):
    """
    :return list(ConcreteJob):
        One job for each branch/template combination, grouped by branch.
    """
    return [
        template_job.CreateConcreteJob(branch_name)
        for branch_name in branch_names
        for template_job in template_jobs
    ]
