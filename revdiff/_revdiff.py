# Copyright Red Hat
#
# revdiff/_revdiff.py - Revision diff global definitions
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level revdiff package.
"""
from typing import Optional, TextIO, TYPE_CHECKING
import logging
import weakref
import sys

if TYPE_CHECKING:
    from .progress import ProgressBase

_log = logging.getLogger("revdiff")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Revdiff debugging subsystem mask
REVDIFF_DEBUG_BACKEND = 1
REVDIFF_DEBUG_TREEDIFF = 2
REVDIFF_DEBUG_COMMAND = 4
REVDIFF_DEBUG_ALL = REVDIFF_DEBUG_BACKEND | REVDIFF_DEBUG_TREEDIFF | REVDIFF_DEBUG_COMMAND

# Revdiff debugging subsystem names
REVDIFF_SUBSYSTEM_BACKEND = "revdiff.backend"
REVDIFF_SUBSYSTEM_TREEDIFF = "revdiff.treediff"
REVDIFF_SUBSYSTEM_COMMAND = "revdiff.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    REVDIFF_DEBUG_BACKEND: REVDIFF_SUBSYSTEM_BACKEND,
    REVDIFF_DEBUG_TREEDIFF: REVDIFF_SUBSYSTEM_TREEDIFF,
    REVDIFF_DEBUG_COMMAND: REVDIFF_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()

# Registry of active progress instances: a WeakSet so that finished
# progress objects can still be garbage collected.
_active_progress: weakref.WeakSet = weakref.WeakSet()

#: The revision name that selects working directory mode.
HEAD_REVISION = "HEAD"


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``revdiff`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    revdiff_log = logging.getLogger("revdiff")

    for handler in revdiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``revdiff`` package.

    :param mask: the logical OR of the ``REVDIFF_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > REVDIFF_DEBUG_ALL:
        raise ValueError(f"Invalid revdiff debug mask: {mask}")

    enabled_subsystems = [
        subsystem_name
        for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items()
        if mask & flag
    ]

    revdiff_log = logging.getLogger("revdiff")
    for handler in revdiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


def register_progress(progress: "ProgressBase"):
    """Register a progress instance for log coordination."""
    _active_progress.add(progress)
    progress.registered = True


def unregister_progress(progress: "ProgressBase"):
    """Unregister a progress instance."""
    _active_progress.discard(progress)
    progress.registered = False


def notify_log_output(stream: TextIO):
    """
    Notify progress instances that log output occurred on stream.

    Called by ProgressAwareHandler after emitting a record.

    :param stream: The stream that received output.
    :type stream: ``TextIO``
    """
    if stream not in (sys.stdout, sys.stderr):
        return
    for progress in list(_active_progress):
        if hasattr(progress, "reset_position"):
            progress.reset_position()


class ProgressAwareHandler(logging.StreamHandler):
    """
    A logging handler that coordinates with active Progress instances.

    After emitting a log record, notifies any Progress instances writing
    to the same stream so they can avoid erasing the log message.
    """

    def __init__(self, stream: Optional[TextIO] = None, **kwargs):
        super().__init__(stream=stream or sys.stderr, **kwargs)

    def emit(self, record):
        try:
            msg = self.format(record)
            self.stream.write(msg + "\n")
            self.stream.flush()
            notify_log_output(self.stream)
        except Exception:  # pylint: disable=broad-exception-caught
            self.handleError(record)


def join_with_slash(left: str, right: str) -> str:
    """
    Join two path fragments with exactly one slash.

    Either side may be empty, in which case the other side is returned
    unchanged. Redundant slashes at the seam are collapsed.

    :param left: The leading path fragment.
    :type left: ``str``
    :param right: The trailing path fragment.
    :type right: ``str``
    :returns: The joined path.
    :rtype: ``str``
    """
    if not left:
        return right
    if not right:
        return left
    return left.rstrip("/") + "/" + right.lstrip("/")


#
# Revdiff exception types
#


class RevdiffError(Exception):
    """
    Base class for revision diff errors.
    """


class RevdiffCalloutError(RevdiffError):
    """
    An error calling out to an external program.
    """


class RevdiffNotFoundError(RevdiffError):
    """
    The requested object does not exist.
    """


class RevdiffObjectUnavailableError(RevdiffError):
    """
    The content for a requested object id could not be retrieved.
    """


class RevdiffMalformedObjectError(RevdiffError):
    """
    A retrieved object could not be parsed: for e.g. a commit with no
    tree reference.
    """


class RevdiffBackendUnavailableError(RevdiffError):
    """
    No usable version control backend is available.
    """


class RevdiffArgumentError(RevdiffError):
    """
    An invalid argument was passed to a revdiff API call.
    """


class RevdiffParseError(RevdiffError):
    """
    An error parsing configuration or backend output.
    """


__all__ = [
    # Debug subsystems
    "REVDIFF_DEBUG_BACKEND",
    "REVDIFF_DEBUG_TREEDIFF",
    "REVDIFF_DEBUG_COMMAND",
    "REVDIFF_DEBUG_ALL",
    "REVDIFF_SUBSYSTEM_BACKEND",
    "REVDIFF_SUBSYSTEM_TREEDIFF",
    "REVDIFF_SUBSYSTEM_COMMAND",
    "SubsystemFilter",
    "get_debug_mask",
    "set_debug_mask",
    # Progress coordination
    "register_progress",
    "unregister_progress",
    "notify_log_output",
    "ProgressAwareHandler",
    # Constants and helpers
    "HEAD_REVISION",
    "join_with_slash",
    # Exceptions
    "RevdiffError",
    "RevdiffCalloutError",
    "RevdiffNotFoundError",
    "RevdiffObjectUnavailableError",
    "RevdiffMalformedObjectError",
    "RevdiffBackendUnavailableError",
    "RevdiffArgumentError",
    "RevdiffParseError",
]
