"""
Jenkins XML configurations handled when creating jobs and views for branches.
"""
import re
from xml.etree import ElementTree


# Tags whose values must never be replaced by a branch name. <assignedNode> commonly holds
# "master" (the Jenkins node), which is also the most common template branch.
IGNORED_TAGS = ["assignedNode"]


def GetConfigForMissingJob(template_config, concrete_job, template_jobs):
    """
    Rewrites the config.xml of a template job so it builds the branch of `concrete_job`.

    - Any value equal to the template branch (e.g. "<name>master<" or "<name>origin/master<") is
      replaced by the new branch name, except inside `IGNORED_TAGS`.
    - Names of other template jobs (downstream triggers, for instance) are replaced by the names
      of their counterparts for the new branch.

    :param unicode template_config:
        config.xml contents of `concrete_job.template_job`.

    :param ConcreteJob concrete_job:
        Job being created.

    :param list(TemplateJob) template_jobs:
        All template jobs.

    :return unicode:
        config.xml for `concrete_job`.
    """
    template_job = concrete_job.template_job
    regex = r"([A-Za-z0-9]*[>/])(%s)<" % re.escape(template_job.template_branch_name)

    def _Replace(match):
        prefix = match.group(1)
        if prefix in [tag + ">" for tag in IGNORED_TAGS]:
            return match.group(0)
        return prefix + concrete_job.branch_name + "<"

    config = re.sub(regex, _Replace, template_config)
    for other in template_jobs:
        config = config.replace(
            other.job_name, other.GetJobNameForBranch(concrete_job.branch_name)
        )
    return config


def IsDisabled(config):
    return "<disabled>true</disabled>" in config


def GetViewIncludeRegex(branch_view, view_regex=None):
    if view_regex:
        return view_regex
    return "%s.*%s" % (branch_view.template_job_prefix or "", branch_view.safe_branch_name)


def CreateListViewConfig(branch_view, view_regex=None):
    """
    :param BranchView branch_view:
        View being created.

    :param unicode|None view_regex:
        Regex selecting the jobs listed in the view. .. seealso:: GetViewIncludeRegex

    :return unicode:
        config.xml of a `hudson.model.ListView`.
    """
    root = ElementTree.Element("hudson.model.ListView")
    ElementTree.SubElement(root, "name").text = branch_view.view_name
    ElementTree.SubElement(root, "filterExecutors").text = "false"
    ElementTree.SubElement(root, "filterQueue").text = "false"
    ElementTree.SubElement(root, "properties", {"class": "hudson.model.View$PropertyList"})
    job_names = ElementTree.SubElement(root, "jobNames")
    ElementTree.SubElement(
        job_names, "comparator", {"class": "hudson.util.CaseInsensitiveComparator"}
    )
    ElementTree.SubElement(root, "jobFilters")
    columns = ElementTree.SubElement(root, "columns")
    for column in (
        "hudson.views.StatusColumn",
        "hudson.views.WeatherColumn",
        "hudson.views.JobColumn",
        "hudson.views.LastSuccessColumn",
        "hudson.views.LastFailureColumn",
        "hudson.views.LastDurationColumn",
        "hudson.views.BuildButtonColumn",
    ):
        ElementTree.SubElement(columns, column)
    ElementTree.SubElement(root, "includeRegex").text = GetViewIncludeRegex(
        branch_view, view_regex
    )
    ElementTree.SubElement(root, "recurse").text = "false"

    return "<?xml version='1.0' encoding='UTF-8'?>\n" + ElementTree.tostring(
        root, encoding="unicode"
    )
