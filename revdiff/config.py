# Copyright Red Hat
#
# revdiff/config.py - Revision diff configuration
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Revision diff configuration file support.
"""
from configparser import ConfigParser, Error as ConfigParserError
from dataclasses import dataclass
from os.path import exists, expanduser, join
import logging
import os

from revdiff import RevdiffParseError
from revdiff.progress import COLOR_MODES

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Configuration file name
_REVDIFF_CFG_FILE = "revdiff.conf"

#: Global configuration section
_REVDIFF_CFG_GLOBAL = "Global"

#: GitCommand configuration key
_REVDIFF_CFG_GIT_COMMAND = "GitCommand"

#: Color configuration key
_REVDIFF_CFG_COLOR = "Color"

#: DetectRemoved configuration key
_REVDIFF_CFG_DETECT_REMOVED = "DetectRemoved"

#: FileTypes configuration key
_REVDIFF_CFG_FILE_TYPES = "FileTypes"


def default_config_path() -> str:
    """
    Return the path of the per-user configuration file, honouring
    ``$XDG_CONFIG_HOME``.

    :returns: The configuration file path.
    :rtype: ``str``
    """
    config_home = os.environ.get("XDG_CONFIG_HOME") or expanduser("~/.config")
    return join(config_home, "revdiff", _REVDIFF_CFG_FILE)


@dataclass
class RevdiffConfig:
    """
    Revdiff configuration.
    """

    #: The git program to run
    git_command: str = "git"
    #: Default color mode
    color: str = "auto"
    #: Report removed paths by default
    detect_removed: bool = False
    #: Use libmagic file type detection by default
    file_types: bool = False

    @classmethod
    def from_file(cls, config_file: str) -> "RevdiffConfig":
        """
        Load ``RevdiffConfig`` from an INI-style configuration file located
        at ``config_file``. A missing file yields the defaults.

        :param config_file: path to revdiff.conf
        :type config_file: ``str``.
        :returns: A ``RevdiffConfig`` instance initialised from
                  ``config_file``.
        :rtype: ``RevdiffConfig``
        :raises: ``RevdiffParseError`` if the file cannot be parsed or holds
                 an invalid value.
        """
        if not exists(config_file):
            return RevdiffConfig()

        _log_debug("Loading configuration from '%s'", config_file)
        cfg = ConfigParser()
        try:
            cfg.read([config_file])
            if not cfg.has_section(_REVDIFF_CFG_GLOBAL):
                return RevdiffConfig()

            section = cfg[_REVDIFF_CFG_GLOBAL]
            config = RevdiffConfig(
                git_command=section.get(_REVDIFF_CFG_GIT_COMMAND, "git").strip(),
                color=section.get(_REVDIFF_CFG_COLOR, "auto").strip(),
                detect_removed=section.getboolean(_REVDIFF_CFG_DETECT_REMOVED, False),
                file_types=section.getboolean(_REVDIFF_CFG_FILE_TYPES, False),
            )
        except (ConfigParserError, ValueError) as err:
            raise RevdiffParseError(
                f"Error parsing configuration file {config_file}: {err}"
            ) from err

        if config.color not in COLOR_MODES:
            raise RevdiffParseError(
                f"Invalid {_REVDIFF_CFG_COLOR} value in {config_file}: {config.color}"
            )
        if not config.git_command:
            raise RevdiffParseError(
                f"Empty {_REVDIFF_CFG_GIT_COMMAND} value in {config_file}"
            )
        return config
