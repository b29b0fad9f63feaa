import pytest

from jobs_per_branch.errors import CollaboratorError
from jobs_per_branch.jenkins_server import IJenkinsServer


class FakeJenkinsServer(IJenkinsServer):
    """
    In-memory Jenkins: mutations change the job and view lists, so consecutive synchronizations
    see the results of previous ones.

    :ivar list(tuple) calls:
        (method name, argument) for each mutating call, in order.

    :ivar dict(unicode,int) wipe_failures:
        Number of times WipeOutWorkspace must still fail for each job name.

    :ivar set(unicode) failing_names:
        Job or view names for which every creation/deletion fails.
    """

    def __init__(self, job_names=(), view_names=()):
        self.job_names = list(job_names)
        self.view_names = list(view_names)
        self.calls = []
        self.wipe_failures = {}
        self.failing_names = set()

    def _Check(self, operation, name):
        if name in self.failing_names:
            raise CollaboratorError(operation, name, "500 Server Error")

    def GetJobNames(self):
        return list(self.job_names)

    def GetViewNames(self, nested_view=None):
        self.calls.append(("GetViewNames", nested_view))
        return list(self.view_names)

    def GetJobConfig(self, job_name):
        return "<project/>"

    def CloneJobForBranch(self, concrete_job, template_jobs):
        self.calls.append(("CloneJobForBranch", concrete_job.job_name))
        self._Check("clone job", concrete_job.job_name)
        self.job_names.append(concrete_job.job_name)

    def EnableJob(self, job_name):
        self.calls.append(("EnableJob", job_name))

    def StartJob(self, concrete_job):
        self.calls.append(("StartJob", concrete_job.job_name))

    def StopJob(self, job_name):
        self.calls.append(("StopJob", job_name))

    def WipeOutWorkspace(self, job_name):
        self.calls.append(("WipeOutWorkspace", job_name))
        remaining = self.wipe_failures.get(job_name, 0)
        if remaining:
            self.wipe_failures[job_name] = remaining - 1
            raise CollaboratorError("wipe out workspace of", job_name, "job is building")

    def DeleteJob(self, job_name):
        self.calls.append(("DeleteJob", job_name))
        self._Check("delete job", job_name)
        self.job_names.remove(job_name)

    def CreateViewForBranch(self, branch_view, nested_view=None, view_regex=None):
        self.calls.append(("CreateViewForBranch", branch_view.view_name))
        self._Check("create view", branch_view.view_name)
        self.view_names.append(branch_view.view_name)

    def DeleteView(self, view_name, nested_view=None):
        self.calls.append(("DeleteView", view_name))
        self._Check("delete view", view_name)
        self.view_names.remove(view_name)

    def GetMutations(self, *method_names):
        return [call for call in self.calls if call[0] in method_names]


@pytest.fixture
def fake_jenkins():
    return FakeJenkinsServer(
        job_names=[
            "app-build-master",
            "app-test-master",
            "app-build-feature_login",
            "app-build-old",
            "unrelated-job",
        ],
        view_names=["All", "app-master"],
    )


@pytest.fixture
def no_sleep(monkeypatch):
    """
    Replaces `time.sleep` with a function recording the requested delays.

    :rtype: list(float)
    """
    import time

    sleeps = []
    monkeypatch.setattr(time, "sleep", sleeps.append)
    return sleeps
