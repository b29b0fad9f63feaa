import io
from typing import Optional

import attr
import yaml

from jobs_per_branch.errors import ConfigurationError


@attr.s(auto_attribs=True, frozen=True)
class SyncOptions(object):
    """
    Options controlling how jobs and views are synchronized with the branches of a repository.
    """

    # Prefix shared by template and managed jobs, e.g. "app".
    template_job_prefix: Optional[str] = None
    # Branch built by the template jobs.
    template_branch_name: str = "master"
    # Only branches fully matching this regex get jobs (python `re` syntax).
    branch_name_regex: Optional[str] = None
    # View under which branch views are created, "/" separated for deeper nesting.
    nested_view: Optional[str] = None
    # Include regex for created views. Defaults to "<prefix>.*<branch>".
    view_regex: Optional[str] = None
    # Root directory of job workspaces on disk, cleaned up when jobs are deleted.
    workspace_path: Optional[str] = None
    dry_run: bool = False
    no_views: bool = False
    no_delete: bool = False
    start_on_create: bool = False
    enable_job: bool = False


@attr.s(auto_attribs=True, frozen=True)
class ServerSettings(object):
    """
    Where to find Jenkins and the git repository.
    """

    jenkins_url: str
    git_url: str
    username: Optional[str] = attr.ib(default=None, repr=False)
    password: Optional[str] = attr.ib(default=None, repr=False)
    # Jenkins folder holding the managed jobs, "/" separated.
    folder_path: Optional[str] = None


# Options accepted in configuration files, mapped to their expected type.
CONFIG_OPTIONS = {
    "branch_name_regex": str,
    "dry_run": bool,
    "enable_job": bool,
    "folder_path": str,
    "git_url": str,
    "jenkins_url": str,
    "nested_view": str,
    "no_delete": bool,
    "no_views": bool,
    "password": str,
    "start_on_create": bool,
    "template_branch_name": str,
    "template_job_prefix": str,
    "username": str,
    "view_regex": str,
    "workspace_path": str,
}

REQUIRED_OPTIONS = ("jenkins_url", "git_url", "template_branch_name")


def LoadConfigFromYAML(yaml_contents):
    """
    Parses a configuration file.

    Example:
        jenkins_url: https://jenkins.example.com
        git_url: git@example.com:app.git
        template_job_prefix: app
        template_branch_name: master
        no_views: true

    :param unicode yaml_contents:
        Contents of the configuration file, in YAML format.

    :return dict(unicode,object):
        Options found in the file, with booleans already converted.
    """
    data = yaml.safe_load(yaml_contents)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping, got: %r" % (data,)
        )

    result = {}
    for option_name, option_value in data.items():
        if option_name not in CONFIG_OPTIONS:
            raise UnknownConfigOption(option_name)
        if option_value is None:
            continue
        expected_type = CONFIG_OPTIONS[option_name]
        if expected_type is bool:
            option_value = Boolean(option_value, option_name)
        elif isinstance(option_value, (int, float)) and not isinstance(option_value, bool):
            # Unquoted numbers are fine for string options, e.g. "template_branch_name: 2020"
            option_value = str(option_value)
        elif not isinstance(option_value, expected_type):
            raise ConfigOptionTypeError(
                option_name, type(option_value), expected_type, option_value
            )
        result[option_name] = option_value
    return result


def LoadConfigFile(filename):
    """
    :param unicode filename:
        Path to a YAML configuration file.

    .. seealso:: LoadConfigFromYAML
    """
    with io.open(filename, encoding="utf-8") as f:
        contents = f.read()
    return LoadConfigFromYAML(contents)


def CreateSettings(values):
    """
    Splits a mapping of option values (from a file, the command line or both) into sync options
    and server settings. Options with a `None` value are ignored.

    :rtype: tuple(SyncOptions,ServerSettings)
    """
    values = {k: v for k, v in values.items() if v is not None}
    for option_name in values:
        if option_name not in CONFIG_OPTIONS:
            raise UnknownConfigOption(option_name)

    missing = [name for name in REQUIRED_OPTIONS if not values.get(name)]
    if missing:
        raise ConfigurationError("Missing required options: %s" % ", ".join(missing))

    sync_fields = {a.name for a in attr.fields(SyncOptions)}
    server_fields = {a.name for a in attr.fields(ServerSettings)}
    options = SyncOptions(**{k: v for k, v in values.items() if k in sync_fields})
    settings = ServerSettings(**{k: v for k, v in values.items() if k in server_fields})
    return options, settings


_TRUE_VALUES = ["TRUE", "YES", "1"]
_FALSE_VALUES = ["FALSE", "NO", "0"]
_TRUE_FALSE_VALUES = _TRUE_VALUES + _FALSE_VALUES


def Boolean(value, option_name=None):
    """
    :param bool|unicode|int value:
        A value semantically representing a boolean.

    :rtype: bool
    """
    if isinstance(value, bool):
        return value
    text_upper = str(value).upper()
    if text_upper not in _TRUE_FALSE_VALUES:
        raise ConfigOptionTypeError(option_name, type(value), bool, value)
    return text_upper in _TRUE_VALUES


class UnknownConfigOption(ConfigurationError):
    """
    Raised when parsing an unknown option in a configuration file.
    """

    def __init__(self, option_name):
        self.option_name = option_name
        ConfigurationError.__init__(
            self,
            'Unknown option "%s". Known options are: %s'
            % (option_name, ", ".join(sorted(CONFIG_OPTIONS))),
        )


class ConfigOptionTypeError(ConfigurationError):
    """
    Raised when an option in a configuration file has an unexpected type.
    """

    def __init__(self, option_name, obtained_type, accepted_type, option_value):
        self.option_name = option_name
        self.obtained_type = obtained_type
        self.accepted_type = accepted_type
        self.option_value = option_value

        ConfigurationError.__init__(
            self,
            'On option "%s". Expected "%s" but got "%s". Value:\n%r'
            % (option_name, accepted_type.__name__, obtained_type.__name__, option_value),
        )


# Prefix of environment variables holding options, e.g. JPB_JENKINS_URL.
ENVIRONMENT_PREFIX = "JPB_"


def LoadConfigFromEnvironment(environ):
    """
    Reads options from environment variables named after them, e.g. "JPB_JENKINS_URL" for
    "jenkins_url". Empty variables are ignored.

    :param dict(unicode,unicode) environ:

    :return dict(unicode,object):
    """
    result = {}
    for option_name, expected_type in CONFIG_OPTIONS.items():
        value = environ.get(ENVIRONMENT_PREFIX + option_name.upper())
        if not value:
            continue
        if expected_type is bool:
            value = Boolean(value, option_name)
        result[option_name] = value
    return result
