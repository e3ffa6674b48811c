# Copyright Red Hat
#
# revdiff/treediff/filetypes.py - Revision diff blob file types
#
# This file is part of the revdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Blob file type information support.
"""
from typing import ClassVar, Dict, Optional, Tuple
from posixpath import basename, splitext
from enum import Enum
import logging
import magic

from revdiff import REVDIFF_SUBSYSTEM_TREEDIFF

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_treediff(msg, *args, **kwargs):
    """A wrapper for treediff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REVDIFF_SUBSYSTEM_TREEDIFF}, **kwargs)


# Mappings for text-like extensions found in source repositories.
# Format: ".ext": ("mime/type", "description starting with lowercase")
TEXT_EXTENSION_MAP = {
    # Documentation
    ".txt": ("text/plain", "plain text document"),
    ".md": ("text/markdown", "markdown documentation"),
    ".rst": ("text/x-rst", "reStructuredText document"),
    ".adoc": ("text/asciidoc", "asciidoc document"),
    ".tex": ("text/x-tex", "latex source document"),
    # Data & configuration
    ".json": ("application/json", "json data file"),
    ".xml": ("application/xml", "xml document"),
    ".yaml": ("application/yaml", "yaml configuration file"),
    ".yml": ("application/yaml", "yaml configuration file"),
    ".toml": ("application/toml", "toml configuration file"),
    ".ini": ("text/x-ini", "ini configuration file"),
    ".cfg": ("text/x-config", "configuration file"),
    ".conf": ("text/x-config", "configuration file"),
    ".csv": ("text/csv", "comma-separated values"),
    ".log": ("text/x-log", "log file"),
    # Web
    ".html": ("text/html", "html document"),
    ".css": ("text/css", "cascading style sheet"),
    ".js": ("text/javascript", "javascript source code"),
    ".ts": ("application/typescript", "typescript source code"),
    ".svg": ("image/svg+xml", "scalable vector graphics"),
    # Scripts
    ".sh": ("application/x-sh", "shell script"),
    ".bash": ("application/x-sh", "bash script"),
    ".pl": ("text/x-perl", "perl script"),
    ".lua": ("text/x-lua", "lua script"),
    # Source code
    ".py": ("text/x-python", "python source code"),
    ".c": ("text/x-c", "c source code"),
    ".h": ("text/x-c", "c header file"),
    ".cpp": ("text/x-c++", "c++ source code"),
    ".hpp": ("text/x-c++", "c++ header file"),
    ".cc": ("text/x-c++", "c++ source code"),
    ".java": ("text/x-java-source", "java source code"),
    ".go": ("text/x-go", "go source code"),
    ".rs": ("text/rust", "rust source code"),
    ".rb": ("text/x-ruby", "ruby source code"),
    ".sql": ("application/x-sql", "sql database script"),
    # Build & patches
    ".diff": ("text/x-diff", "unified diff output"),
    ".patch": ("text/x-diff", "unified diff output"),
    ".cmake": ("text/x-cmake", "cmake build script"),
    ".pro": ("text/x-qmake", "qmake project file"),
    ".spec": ("text/x-rpm-spec", "rpm spec file"),
}

# Mappings for well-known file names without a useful extension.
TEXT_FILENAME_MAP = {
    "Makefile": ("text/x-makefile", "makefile script"),
    "CMakeLists.txt": ("text/x-cmake", "cmake build script"),
    "Dockerfile": ("text/x-dockerfile", "dockerfile build script"),
    "LICENSE": ("text/plain", "license text"),
    "COPYING": ("text/plain", "license text"),
    "README": ("text/plain", "plain text document"),
    ".gitignore": ("text/plain", "git ignore rules"),
    ".gitattributes": ("text/plain", "git attributes"),
    ".gitmodules": ("text/x-ini", "git submodule configuration"),
}

BINARY_EXTENSION_MAP = {
    # Images
    ".png": ("image/png", "png image data"),
    ".jpg": ("image/jpeg", "jpeg image data"),
    ".jpeg": ("image/jpeg", "jpeg image data"),
    ".gif": ("image/gif", "gif image data"),
    ".ico": ("image/vnd.microsoft.icon", "ms windows icon resource"),
    ".bmp": ("image/bmp", "pc bitmap"),
    # Archives
    ".zip": ("application/zip", "zip archive data"),
    ".gz": ("application/gzip", "gzip compressed data"),
    ".tar": ("application/x-tar", "posix tar archive"),
    ".xz": ("application/x-xz", "xz compressed data"),
    ".jar": ("application/java-archive", "java archive data"),
    # Objects & executables
    ".o": ("application/x-object", "elf relocatable object"),
    ".so": ("application/x-sharedlib", "elf shared object"),
    ".a": ("application/x-archive", "current ar archive"),
    ".exe": ("application/x-dosexec", "pe32 executable"),
    ".dll": ("application/x-dosexec", "pe32 dynamic link library"),
    ".pyc": ("application/x-bytecode.python", "python byte-compiled"),
    ".class": ("application/x-java-applet", "compiled java class data"),
    # Documents & fonts
    ".pdf": ("application/pdf", "pdf document"),
    ".ttf": ("font/sfnt", "truetype font data"),
    ".woff": ("font/woff", "web open font format"),
    ".db": ("application/x-sqlite3", "sqlite 3.x database"),
    ".sqlite": ("application/x-sqlite3", "sqlite 3.x database"),
}


def _guess_blob(path: str) -> Tuple[str, str, str]:
    """
    Attempt to guess a blob's MIME type and description based on the file
    name and extension of its repository path.

    :param path: The repository path of the blob.
    :type path: ``str``
    :returns: A 3-tuple containing (mime_type, description, encoding).
    :rtype: ``Tuple[str, str, str]``
    """
    name = basename(path)
    if name in TEXT_FILENAME_MAP:
        return (*TEXT_FILENAME_MAP[name], "utf-8")

    ext = splitext(name)[1].lower()
    if ext in BINARY_EXTENSION_MAP:
        return (*BINARY_EXTENSION_MAP[ext], "binary")
    if ext in TEXT_EXTENSION_MAP:
        return (*TEXT_EXTENSION_MAP[ext], "utf-8")

    return ("application/octet-stream", "unknown file type", "binary")


class FileTypeCategory(Enum):
    """
    Enum for file type categories.
    """

    TEXT = "text"
    BINARY = "binary"
    IMAGE = "image"
    ARCHIVE = "archive"
    EXECUTABLE = "executable"
    CONFIG = "config"
    LOG = "log"
    DATABASE = "database"
    DOCUMENT = "document"
    SOURCE_CODE = "source_code"
    UNKNOWN = "unknown"


class FileTypeInfo:
    """
    Class representing file type information and encoding.
    """

    def __init__(
        self,
        mime_type: str,
        description: str,
        category: FileTypeCategory,
        encoding: Optional[str] = None,
    ):
        """
        Initialise a new ``FileTypeInfo`` object.

        :param mime_type: The detected MIME type.
        :type mime_type: ``str``
        :param description: Type description returned by magic.
        :type description: ``str``
        :param category: File type category.
        :type category: ``FileTypeCategory``
        :param encoding: Optional file encoding.
        :type encoding: ``Optional[str]``
        """
        self.mime_type = mime_type
        self.description = description
        self.category = category
        self.encoding = encoding
        self.is_text_like = category in (
            FileTypeCategory.TEXT,
            FileTypeCategory.CONFIG,
            FileTypeCategory.LOG,
            FileTypeCategory.SOURCE_CODE,
        ) or (category == FileTypeCategory.DOCUMENT and mime_type.startswith("text/"))

    def to_dict(self):
        """
        Return a dictionary representation of this ``FileTypeInfo``.

        :returns: A dictionary mapping field names to values.
        :rtype: ``Dict[str, Optional[str]]``
        """
        return {
            "mime_type": self.mime_type,
            "description": self.description,
            "category": self.category.value,
            "encoding": self.encoding,
        }

    def __str__(self):
        """
        Return a string representation of this ``FileTypeInfo`` object.

        :returns: A human readable string describing this instance.
        :rtype: ``str``
        """
        return (
            f"MIME type: {self.mime_type}, "
            f"Category: {self.category.value}, "
            f"Encoding: {self.encoding if self.encoding else 'unknown'}, "
            f"Description: {self.description}"
        )


class FileTypeDetector:
    """
    Detect blob types using ``magic`` from python3-file-magic.
    """

    # fmt: off
    category_rules: ClassVar[Dict[str, FileTypeCategory]] = {
        # --- Archives & Compression ---
        "application/zip": FileTypeCategory.ARCHIVE,
        "application/x-tar": FileTypeCategory.ARCHIVE,
        "application/gzip": FileTypeCategory.ARCHIVE,
        "application/x-gzip": FileTypeCategory.ARCHIVE,
        "application/x-xz": FileTypeCategory.ARCHIVE,
        "application/x-archive": FileTypeCategory.ARCHIVE,
        "application/java-archive": FileTypeCategory.ARCHIVE,
        # --- Executables & Libraries ---
        "application/x-executable": FileTypeCategory.EXECUTABLE,
        "application/x-sharedlib": FileTypeCategory.EXECUTABLE,
        "application/x-pie-executable": FileTypeCategory.EXECUTABLE,
        "application/x-dosexec": FileTypeCategory.EXECUTABLE,
        "application/x-object": FileTypeCategory.EXECUTABLE,
        # --- Documents ---
        "application/pdf": FileTypeCategory.DOCUMENT,
        "text/markdown": FileTypeCategory.DOCUMENT,
        "text/x-rst": FileTypeCategory.DOCUMENT,
        "text/asciidoc": FileTypeCategory.DOCUMENT,
        "text/x-tex": FileTypeCategory.DOCUMENT,
        # --- Configuration & Data Serialization ---
        "application/json": FileTypeCategory.CONFIG,
        "application/xml": FileTypeCategory.CONFIG,
        "text/xml": FileTypeCategory.CONFIG,
        "application/yaml": FileTypeCategory.CONFIG,
        "application/toml": FileTypeCategory.CONFIG,
        "text/x-ini": FileTypeCategory.CONFIG,
        "text/x-config": FileTypeCategory.CONFIG,
        # --- Logs & Databases ---
        "text/x-log": FileTypeCategory.LOG,
        "application/x-sqlite3": FileTypeCategory.DATABASE,
        "application/vnd.sqlite3": FileTypeCategory.DATABASE,
        # --- Source Code ---
        "application/javascript": FileTypeCategory.SOURCE_CODE,
        "application/typescript": FileTypeCategory.SOURCE_CODE,
        "application/x-sh": FileTypeCategory.SOURCE_CODE,
        "application/x-sql": FileTypeCategory.SOURCE_CODE,
        "text/javascript": FileTypeCategory.SOURCE_CODE,
        "text/x-python": FileTypeCategory.SOURCE_CODE,
        "text/x-script.python": FileTypeCategory.SOURCE_CODE,
        "text/x-shellscript": FileTypeCategory.SOURCE_CODE,
        "text/x-c": FileTypeCategory.SOURCE_CODE,
        "text/x-java-source": FileTypeCategory.SOURCE_CODE,
        "text/x-go": FileTypeCategory.SOURCE_CODE,
        "text/rust": FileTypeCategory.SOURCE_CODE,
        "text/x-ruby": FileTypeCategory.SOURCE_CODE,
        "text/x-perl": FileTypeCategory.SOURCE_CODE,
        "text/x-lua": FileTypeCategory.SOURCE_CODE,
        "text/html": FileTypeCategory.SOURCE_CODE,
        "text/css": FileTypeCategory.SOURCE_CODE,
        "text/x-diff": FileTypeCategory.SOURCE_CODE,
        "text/x-makefile": FileTypeCategory.SOURCE_CODE,
        "text/x-cmake": FileTypeCategory.SOURCE_CODE,
        "text/x-dockerfile": FileTypeCategory.SOURCE_CODE,
        # --- Generic Prefixes (Fallbacks) ---
        "text/": FileTypeCategory.TEXT,
        "image/": FileTypeCategory.IMAGE,
        "font/": FileTypeCategory.BINARY,
    }
    # fmt: on

    def detect_blob_type(
        self, path: str, content: Optional[bytes] = None, use_magic: bool = False
    ) -> FileTypeInfo:
        """
        Detect file type information for a blob, optionally using
        python-magic to inspect the blob content.

        :param path: The repository path of the blob.
        :type path: ``str``
        :param content: The blob content, or ``None`` if unavailable.
        :type content: ``Optional[bytes]``
        :param use_magic: Inspect ``content`` with libmagic.
        :type use_magic: ``bool``
        :returns: File type information for the blob at ``path``.
        :rtype: ``FileTypeInfo``
        """
        if use_magic and content is not None:
            # c9s magic does not have magic.error
            if hasattr(magic, "error"):
                magic_errors = (magic.error, OSError, ValueError)
            else:
                magic_errors = (OSError, ValueError)

            try:
                fm = magic.detect_from_content(content)
                _log_debug_treediff("Detected %s as %s", path, fm.mime_type)
                category = self._categorize_blob(fm.mime_type, path)
                return FileTypeInfo(fm.mime_type, fm.name, category, fm.encoding)
            except magic_errors as err:
                _log_warn("Error detecting file type for %s: %s", path, err)
                return FileTypeInfo(
                    "application/octet-stream", "unknown", FileTypeCategory.UNKNOWN
                )

        mime_type, description, encoding = _guess_blob(path)
        category = self._categorize_blob(mime_type, path)
        return FileTypeInfo(mime_type, description, category, encoding)

    def _categorize_blob(self, mime_type: str, path: str) -> FileTypeCategory:
        """
        Categorize a blob based on MIME type and path patterns.

        :param mime_type: Detected blob MIME type.
        :type mime_type: ``str``
        :param path: Repository path of the blob.
        :type path: ``str``
        :returns: File type categorization.
        :rtype: ``FileTypeCategory``
        """
        mime_type = mime_type.lower()
        path_str = path.lower()
        if path_str.endswith(".log"):
            return FileTypeCategory.LOG
        if path_str.endswith((".conf", ".cfg", ".ini")):
            return FileTypeCategory.CONFIG

        for pattern, category in self.category_rules.items():
            if mime_type.startswith(pattern):
                return category

        return FileTypeCategory.BINARY
