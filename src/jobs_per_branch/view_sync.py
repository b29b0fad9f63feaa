import logging

from jobs_per_branch.errors import CollaboratorError
from jobs_per_branch.jenkins_server import JobCatalog
from jobs_per_branch.names import BranchView


logger = logging.getLogger(__name__)


def GetDeprecatedViewNames(
    existing_view_names, expected_branch_views, template_job_prefix
):
    """
    :return list(unicode):
        Existing views that are not expected anymore. When a prefix is configured only views
        starting with it are considered, other views are never touched.
    """
    expected_view_names = {view.view_name for view in expected_branch_views}
    candidates = existing_view_names
    if template_job_prefix:
        candidates = [name for name in candidates if name.startswith(template_job_prefix)]
    return [name for name in candidates if name not in expected_view_names]


class ViewSynchronizer(object):
    """
    Creates a view for each branch and deletes views of branches that are gone.
    """

    def __init__(self, jenkins_server, options, job_catalog=None):
        """
        :param IJenkinsServer jenkins_server:
        :param SyncOptions options:
        :param JobCatalog|None job_catalog:
            Source of existing view names. Defaults to a catalog over `jenkins_server`.
        """
        self.jenkins_server = jenkins_server
        self.options = options
        self.job_catalog = job_catalog or JobCatalog(jenkins_server)

    def SyncViews(self, all_branch_names, report):
        nested_view = self.options.nested_view
        existing_view_names = self.job_catalog.GetViewNames(nested_view)
        expected_branch_views = [
            BranchView(
                branch_name=branch_name,
                template_job_prefix=self.options.template_job_prefix,
            )
            for branch_name in all_branch_names
        ]

        missing_views = [
            view
            for view in expected_branch_views
            if view.view_name not in existing_view_names
        ]
        self.AddMissingViews(missing_views, report)

        if not self.options.no_delete:
            self.DeleteDeprecatedViews(
                GetDeprecatedViewNames(
                    existing_view_names,
                    expected_branch_views,
                    self.options.template_job_prefix,
                ),
                report,
            )

    def AddMissingViews(self, missing_views, report):
        logger.info("Missing views: %s", [view.view_name for view in missing_views])
        for missing_view in missing_views:
            try:
                self.jenkins_server.CreateViewForBranch(
                    missing_view, self.options.nested_view, self.options.view_regex
                )
            except CollaboratorError as e:
                logger.exception("Could not create view %s", missing_view.view_name)
                report.AddError(missing_view.view_name, e)
            else:
                report.created_views.append(missing_view.view_name)

    def DeleteDeprecatedViews(self, deprecated_view_names, report):
        logger.info("Deprecated views: %s", deprecated_view_names)
        for view_name in deprecated_view_names:
            try:
                self.jenkins_server.DeleteView(view_name, self.options.nested_view)
            except CollaboratorError as e:
                logger.exception("Could not delete view %s", view_name)
                report.AddError(view_name, e)
            else:
                report.deleted_views.append(view_name)
