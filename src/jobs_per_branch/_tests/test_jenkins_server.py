import json

import pytest

from jobs_per_branch.errors import CollaboratorError
from jobs_per_branch.jenkins_server import CreateJenkinsServer
from jobs_per_branch.jenkins_server import GetJobNameFilter
from jobs_per_branch.jenkins_server import JenkinsServer
from jobs_per_branch.jenkins_server import JobCatalog
from jobs_per_branch.jenkins_server import ReadOnlyJenkinsServer
from jobs_per_branch.names import BranchView
from jobs_per_branch.names import TemplateJob


_TEMPLATE_CONFIG = "<project><name>origin/master</name><disabled>false</disabled></project>"


@pytest.fixture(name="mock_jenkins")
def mock_jenkins_(monkeypatch):
    import jenkins

    class MockJenkins(object):
        """
        Records calls made to python-jenkins.
        """

        instances = []

        def __init__(self, url, username, password):
            assert url == "https://jenkins"
            assert username == "jenkins_user"
            assert password == "jenkins_pass"
            self.server = url + "/"
            self.calls = []
            self.config = _TEMPLATE_CONFIG
            self.last_build = {"number": 7}
            self.error = None
            MockJenkins.instances.append(self)

        def _Record(self, *call):
            self.calls.append(call)
            if self.error is not None:
                raise self.error

        def get_jobs(self):
            self._Record("get_jobs")
            return [{"name": "app-build-master"}, {"name": "app-build-bugfix"}]

        def get_job_info(self, name):
            self._Record("get_job_info", name)
            if name == "team/app":
                return {"jobs": [{"name": "app-test-master"}]}
            return {"lastBuild": self.last_build}

        def get_views(self):
            self._Record("get_views")
            return [{"name": "All"}, {"name": "app-master"}]

        def get_job_config(self, name):
            self._Record("get_job_config", name)
            return self.config

        def copy_job(self, from_name, to_name):
            self._Record("copy_job", from_name, to_name)

        def reconfig_job(self, name, config_xml):
            self._Record("reconfig_job", name, config_xml)

        def disable_job(self, name):
            self._Record("disable_job", name)

        def enable_job(self, name):
            self._Record("enable_job", name)

        def build_job(self, name):
            self._Record("build_job", name)

        def stop_build(self, name, number):
            self._Record("stop_build", name, number)

        def delete_job(self, name):
            self._Record("delete_job", name)

        def create_view(self, name, config_xml):
            self._Record("create_view", name)

        def delete_view(self, name):
            self._Record("delete_view", name)

        def jenkins_open(self, request):
            self._Record("jenkins_open", request.method, request.url)
            return json.dumps({"views": [{"name": "app-bugfix"}]})

    monkeypatch.setattr(jenkins, "Jenkins", MockJenkins)
    return MockJenkins


def _CreateServer(folder_path=None, server_class=JenkinsServer):
    return server_class("https://jenkins", "jenkins_user", "jenkins_pass", folder_path)


_TEMPLATE_JOB = TemplateJob("app-build-master", "app-build", "master")


def testGetJobNames(mock_jenkins):
    assert _CreateServer().GetJobNames() == ["app-build-master", "app-build-bugfix"]
    assert _CreateServer("/team/app/").GetJobNames() == ["app-test-master"]


def testGetViewNames(mock_jenkins):
    server = _CreateServer()
    assert server.GetViewNames() == ["All", "app-master"]
    assert server.GetViewNames("branches/app") == ["app-bugfix"]
    assert server.jenkins_api.calls[-1] == (
        "jenkins_open",
        "GET",
        "https://jenkins/view/branches/view/app/api/json?tree=views[name]",
    )


def testCloneJobForBranch(mock_jenkins):
    server = _CreateServer("team")
    server.CloneJobForBranch(_TEMPLATE_JOB.CreateConcreteJob("bugfix"), [_TEMPLATE_JOB])
    assert server.jenkins_api.calls == [
        ("get_job_config", "team/app-build-master"),
        ("copy_job", "team/app-build-master", "team/app-build-bugfix"),
        (
            "reconfig_job",
            "team/app-build-bugfix",
            "<project><name>origin/bugfix</name><disabled>false</disabled></project>",
        ),
        ("disable_job", "team/app-build-bugfix"),
        ("enable_job", "team/app-build-bugfix"),
    ]


def testCloneDisabledTemplate(mock_jenkins):
    server = _CreateServer()
    server.jenkins_api.config = "<project><disabled>true</disabled></project>"
    server.CloneJobForBranch(_TEMPLATE_JOB.CreateConcreteJob("bugfix"), [_TEMPLATE_JOB])
    assert server.jenkins_api.calls[-1] == ("disable_job", "app-build-bugfix")


def testJobOperations(mock_jenkins):
    server = _CreateServer("team")
    server.EnableJob("app-build-bugfix")
    server.StartJob(_TEMPLATE_JOB.CreateConcreteJob("bugfix"))
    server.WipeOutWorkspace("app-build-bugfix")
    server.DeleteJob("app-build-bugfix")
    assert server.jenkins_api.calls == [
        ("enable_job", "team/app-build-bugfix"),
        ("build_job", "team/app-build-bugfix"),
        (
            "jenkins_open",
            "POST",
            "https://jenkins/job/team/job/app-build-bugfix/doWipeOutWorkspace",
        ),
        ("delete_job", "team/app-build-bugfix"),
    ]


def testStopJob(mock_jenkins):
    server = _CreateServer()
    server.StopJob("app-build-bugfix")
    assert server.jenkins_api.calls[-1] == ("stop_build", "app-build-bugfix", 7)

    server.jenkins_api.calls.clear()
    server.jenkins_api.last_build = None
    server.StopJob("app-build-bugfix")
    assert server.jenkins_api.calls == [("get_job_info", "app-build-bugfix")]


def testViews(mock_jenkins):
    server = _CreateServer()
    view = BranchView("bugfix", "app")
    server.CreateViewForBranch(view)
    server.CreateViewForBranch(view, "branches")
    server.DeleteView("app-bugfix")
    server.DeleteView("app-bugfix", "branches")
    assert server.jenkins_api.calls == [
        ("create_view", "app-bugfix"),
        ("jenkins_open", "POST", "https://jenkins/view/branches/createView?name=app-bugfix"),
        ("delete_view", "app-bugfix"),
        ("jenkins_open", "POST", "https://jenkins/view/branches/view/app-bugfix/doDelete"),
    ]


def testErrorsAreTranslated(mock_jenkins):
    import jenkins
    import requests

    server = _CreateServer()
    server.jenkins_api.error = jenkins.JenkinsException("job is building")
    with pytest.raises(CollaboratorError, match='wipe out workspace of "app-build-bugfix"'):
        server.WipeOutWorkspace("app-build-bugfix")

    server.jenkins_api.error = requests.exceptions.ConnectionError("refused")
    with pytest.raises(CollaboratorError, match="list jobs"):
        server.GetJobNames()


def testReadOnlyJenkinsServer(mock_jenkins):
    server = CreateJenkinsServer(
        "https://jenkins", "jenkins_user", "jenkins_pass", dry_run=True
    )
    assert isinstance(server, ReadOnlyJenkinsServer)

    concrete_job = _TEMPLATE_JOB.CreateConcreteJob("bugfix")
    server.CloneJobForBranch(concrete_job, [_TEMPLATE_JOB])
    server.EnableJob("app-build-bugfix")
    server.StartJob(concrete_job)
    server.StopJob("app-build-bugfix")
    server.WipeOutWorkspace("app-build-bugfix")
    server.DeleteJob("app-build-bugfix")
    server.CreateViewForBranch(BranchView("bugfix", "app"), "branches")
    server.DeleteView("app-bugfix", "branches")
    assert server.jenkins_api.calls == []

    # Reads still reach Jenkins.
    assert server.GetJobNames() == ["app-build-master", "app-build-bugfix"]

    assert not isinstance(
        CreateJenkinsServer("https://jenkins", "jenkins_user", "jenkins_pass"),
        ReadOnlyJenkinsServer,
    )


def testJobCatalog(mock_jenkins):
    server = _CreateServer()
    assert JobCatalog(server).GetJobNames() == ["app-build-master", "app-build-bugfix"]

    job_name_filter = GetJobNameFilter("feature/.*", "master")
    assert JobCatalog(server, job_name_filter).GetJobNames() == ["app-build-master"]
    assert JobCatalog(server).GetViewNames() == ["All", "app-master"]

    assert GetJobNameFilter(None, "master") is None
