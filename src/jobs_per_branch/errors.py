class JobsPerBranchError(Exception):
    """
    Base class for all errors raised by jobs_per_branch.
    """


class ConfigurationError(JobsPerBranchError):
    """
    Raised when the configuration does not allow a synchronization to happen, for instance
    when no template jobs could be found in Jenkins.
    """


class CollaboratorError(JobsPerBranchError):
    """
    Raised when a call to an external system (Jenkins, git or the filesystem) fails.

    :ivar unicode operation:
        Name of the operation that failed, e.g. "wipe out workspace".

    :ivar unicode|None name:
        Name of the job, view or repository the operation was acting on.
    """

    def __init__(self, operation, name=None, reason=None):
        self.operation = operation
        self.name = name
        message = "Failed to %s" % operation
        if name is not None:
            message += ' "%s"' % name
        if reason is not None:
            message += ": %s" % reason
        JobsPerBranchError.__init__(self, message)


class DeletionRetryExhausted(CollaboratorError):
    """
    Raised when wiping out the workspace of a job fails even after stopping the job and waiting.
    """

    def __init__(self, name, reason=None):
        CollaboratorError.__init__(self, "wipe out workspace (after retry)", name, reason)
