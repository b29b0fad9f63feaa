import logging
import re
import subprocess
from typing import Optional

import attr

from jobs_per_branch.errors import CollaboratorError


logger = logging.getLogger(__name__)


@attr.s(auto_attribs=True, frozen=True)
class GitRepository(object):
    """
    Represents the remote git repository whose branches drive job creation.
    """

    # Repository clone URL.
    url: str
    # Only branches fully matching this regex are considered, when given.
    branch_name_regex: Optional[str] = None

    def GetBranchNames(self):
        """
        :return list(unicode):
            Names of the branches in the remote repository, in the order git lists them.
        """
        command = ["git", "ls-remote", "--heads", self.url]
        logger.info("Listing branches of %s", self.url)
        try:
            output = subprocess.check_output(command).decode("UTF-8")
        except (OSError, subprocess.CalledProcessError) as e:
            raise CollaboratorError("list branches of", self.url, e) from e
        return self._ParseLsRemote(output)

    def _ParseLsRemote(self, output):
        prefix = "refs/heads/"
        branch_names = []
        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            _sha, ref = line.split(None, 1)
            if not ref.startswith(prefix):
                continue
            branch_name = ref[len(prefix) :]
            if self.branch_name_regex and not re.fullmatch(
                self.branch_name_regex, branch_name
            ):
                continue
            branch_names.append(branch_name)
        return branch_names


def GetUniqueBranchNames(branch_names):
    """
    Removes branch names that differ only in case, keeping the first one seen.
    """
    seen = set()
    result = []
    for branch_name in branch_names:
        key = branch_name.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(branch_name)
    return result


class BranchCatalog(object):
    """
    Provides the branch names of a repository.

    :ivar GitRepository repository:
        Anything with a `GetBranchNames()` method returning a list of branch names.
    """

    def __init__(self, repository):
        self.repository = repository

    def GetBranchNames(self):
        """
        :return list(unicode):
            Branch names, de-duplicated ignoring case.
        """
        return GetUniqueBranchNames(self.repository.GetBranchNames())
