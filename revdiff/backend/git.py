# Copyright Red Hat
#
# revdiff/backend/git.py - Revision diff git backend
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Git command line backend.
"""
from os.path import join as path_join, exists as path_exists
from subprocess import run, CalledProcessError
from tempfile import NamedTemporaryFile
from typing import List, Optional
from shutil import which
import logging

from revdiff import (
    REVDIFF_SUBSYSTEM_BACKEND,
    RevdiffBackendUnavailableError,
    RevdiffCalloutError,
    RevdiffNotFoundError,
    RevdiffObjectUnavailableError,
)
from revdiff.backend import Backend, StatusEntry, parse_porcelain_status

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_backend(msg, *args, **kwargs):
    """A wrapper for backend subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REVDIFF_SUBSYSTEM_BACKEND}, **kwargs)


GIT_CMD = "git"

# git sub-commands and options
GIT_CAT_FILE = "cat-file"
GIT_CAT_FILE_PRETTY = "-p"
GIT_DIFF = "diff"
GIT_DIFF_FULL_INDEX = "--full-index"
GIT_DIFF_NO_INDEX = "--no-index"
GIT_HASH_OBJECT = "hash-object"
GIT_HASH_OBJECT_WRITE = "-w"
GIT_HASH_OBJECT_STDIN = "--stdin"
GIT_REV_PARSE = "rev-parse"
GIT_REV_PARSE_VERIFY = "--verify"
GIT_REV_PARSE_TOPLEVEL = "--show-toplevel"
GIT_STATUS = "status"
GIT_STATUS_PORCELAIN = "--porcelain"
GIT_STATUS_NUL = "-z"
GIT_STATUS_UNTRACKED = "--untracked-files=all"
GIT_HEAD = "HEAD"
GIT_END_OF_OPTIONS = "--"

#: ``git diff`` exit codes meaning "no differences" and "differences".
GIT_DIFF_OK_CODES = (0, 1)

DEV_NULL = "/dev/null"


def _decode_stderr(err):
    """
    Decode and strip the stderr member of a ``CalledProcessError`` and
    return the result as a string.

    :param err: A ``CalledProcessError`` like exception.
    :returns: A stripped string representation of the exception's stderr
              member.
    """
    if not err.stderr:
        return f"exit status {err.returncode}"
    return err.stderr.decode("utf8", errors="replace").strip()


class GitBackend(Backend):
    """
    A backend that drives the ``git`` command line tool.
    """

    name = "git"
    version = "0.1.0"

    def __init__(self, path: str = ".", git_command: str = GIT_CMD):
        """
        Initialise a new ``GitBackend`` for the work tree containing
        ``path``.

        :param path: A path inside the work tree.
        :type path: ``str``
        :param git_command: The git program to run.
        :type git_command: ``str``
        :raises: ``RevdiffBackendUnavailableError`` if ``git_command`` is not
                 found or ``path`` is not inside a git work tree.
        """
        if not which(git_command):
            raise RevdiffBackendUnavailableError(f"{git_command} command not found")
        self.git_command = git_command
        self._empty_blob_id: Optional[str] = None

        toplevel_args = [git_command, "-C", path, GIT_REV_PARSE, GIT_REV_PARSE_TOPLEVEL]
        try:
            toplevel_cmd = run(toplevel_args, capture_output=True, check=True)
        except CalledProcessError as err:
            raise RevdiffBackendUnavailableError(
                f"Not a git work tree: {path}: {_decode_stderr(err)}"
            ) from err
        self.root = toplevel_cmd.stdout.decode("utf8").strip()
        _log_debug_backend("Initialised git backend for %s", self.root)

    def _run(self, args: List[str], input_data: Optional[bytes] = None, ok_codes=(0,)):
        """
        Run ``git`` with ``args`` in the work tree root.

        :param args: Arguments following the git program name.
        :type args: ``List[str]``
        :param input_data: Optional data for the command's standard input.
        :type input_data: ``Optional[bytes]``
        :param ok_codes: Exit codes that indicate success.
        :type ok_codes: ``Tuple[int, ...]``
        :returns: The completed process.
        :raises: ``CalledProcessError`` if the exit code is not in
                 ``ok_codes``.
        """
        cmd_args = [self.git_command] + args
        _log_debug_backend("Calling %s", " ".join(cmd_args))
        result = run(cmd_args, cwd=self.root, input=input_data, capture_output=True)
        if result.returncode not in ok_codes:
            raise CalledProcessError(
                result.returncode, cmd_args, output=result.stdout, stderr=result.stderr
            )
        return result

    @property
    def empty_blob_id(self) -> str:
        """
        The content id of the empty blob, written to the object store on
        first use.
        """
        if self._empty_blob_id is None:
            hash_args = [GIT_HASH_OBJECT, GIT_HASH_OBJECT_WRITE, GIT_HASH_OBJECT_STDIN]
            try:
                hash_cmd = self._run(hash_args, input_data=b"")
            except CalledProcessError as err:
                raise RevdiffCalloutError(
                    f"Error calling {GIT_CMD} {GIT_HASH_OBJECT}: {_decode_stderr(err)}"
                ) from err
            self._empty_blob_id = hash_cmd.stdout.decode("utf8").strip()
        return self._empty_blob_id

    def cat_object(self, content_id: str) -> bytes:
        try:
            cat_cmd = self._run([GIT_CAT_FILE, GIT_CAT_FILE_PRETTY, content_id])
        except CalledProcessError as err:
            raise RevdiffObjectUnavailableError(
                f"Could not read object {content_id}: {_decode_stderr(err)}"
            ) from err
        return cat_cmd.stdout

    def raw_diff(self, old_id: str, new_id: str) -> str:
        old_id = old_id or self.empty_blob_id
        new_id = new_id or self.empty_blob_id
        try:
            diff_cmd = self._run([GIT_DIFF, GIT_DIFF_FULL_INDEX, old_id, new_id])
        except CalledProcessError as err:
            raise RevdiffCalloutError(
                f"Error calling {GIT_CMD} {GIT_DIFF}: {_decode_stderr(err)}"
            ) from err
        return diff_cmd.stdout.decode("utf8", errors="replace")

    def _diff_no_index(self, old_path: str, new_path: str) -> str:
        diff_args = [
            GIT_DIFF,
            GIT_DIFF_NO_INDEX,
            GIT_DIFF_FULL_INDEX,
            GIT_END_OF_OPTIONS,
            old_path,
            new_path,
        ]
        try:
            diff_cmd = self._run(diff_args, ok_codes=GIT_DIFF_OK_CODES)
        except CalledProcessError as err:
            raise RevdiffCalloutError(
                f"Error calling {GIT_CMD} {GIT_DIFF}: {_decode_stderr(err)}"
            ) from err
        return diff_cmd.stdout.decode("utf8", errors="replace")

    def raw_diff_against_working_file(self, old_id: str, path: str) -> str:
        work_path = path_join(self.root, path)
        if not path_exists(work_path):
            return self.raw_diff(old_id, "")
        if not old_id:
            return self._diff_no_index(DEV_NULL, work_path)
        with NamedTemporaryFile(prefix="revdiff-") as old_file:
            old_file.write(self.cat_object(old_id))
            old_file.flush()
            return self._diff_no_index(old_file.name, work_path)

    def status(self) -> List[StatusEntry]:
        status_args = [
            GIT_STATUS,
            GIT_STATUS_PORCELAIN,
            GIT_STATUS_NUL,
            GIT_STATUS_UNTRACKED,
        ]
        try:
            status_cmd = self._run(status_args)
        except CalledProcessError as err:
            raise RevdiffCalloutError(
                f"Error calling {GIT_CMD} {GIT_STATUS}: {_decode_stderr(err)}"
            ) from err
        return parse_porcelain_status(status_cmd.stdout.decode("utf8", errors="replace"))

    def resolve_head(self) -> str:
        return self.resolve_revision(GIT_HEAD)

    def resolve_revision(self, revision: str) -> str:
        """
        Resolve ``revision`` to a full commit id.

        :param revision: Any revision name understood by git.
        :type revision: ``str``
        :returns: The commit id.
        :rtype: ``str``
        :raises: ``RevdiffNotFoundError`` if ``revision`` does not name a
                 commit.
        """
        rev_args = [GIT_REV_PARSE, GIT_REV_PARSE_VERIFY, f"{revision}^{{commit}}"]
        try:
            rev_cmd = self._run(rev_args)
        except CalledProcessError as err:
            raise RevdiffNotFoundError(
                f"Cannot resolve revision {revision}: {_decode_stderr(err)}"
            ) from err
        return rev_cmd.stdout.decode("utf8").strip()
