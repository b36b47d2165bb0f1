"""Tar archives of the target state."""

import getpass
import grp
import logging
import os
import tarfile
import time
from collections.abc import Iterable
from typing import BinaryIO

from dotctl.entries import TargetEntry

logger = logging.getLogger(__name__)

# Archive format name -> tarfile stream mode
ARCHIVE_MODES = {
    "tar": "w|",
    "tar.gz": "w|gz",
}


def make_header_template(mtime: float | None = None) -> tarfile.TarInfo:
    """Build the header every archived entry clones.

    Owner fields describe the current user; the modification time is
    shared by all entries.

    Args:
        mtime: Modification time, defaults to now.
    """
    header = tarfile.TarInfo()
    header.uid = os.getuid()
    header.gid = os.getgid()
    try:
        header.uname = getpass.getuser()
    except (KeyError, OSError):
        header.uname = ""
    try:
        header.gname = grp.getgrgid(header.gid).gr_name
    except KeyError:
        header.gname = ""
    header.mtime = int(time.time() if mtime is None else mtime)
    return header


def write_archive(
    entries: Iterable[TargetEntry],
    fileobj: BinaryIO,
    umask: int,
    archive_format: str = "tar",
    header_template: tarfile.TarInfo | None = None,
) -> int:
    """Write entries to fileobj as a tar stream, in target-name order.

    Args:
        entries: Entries to archive.
        fileobj: Binary stream to write to.
        umask: Permission bits cleared from archived modes.
        archive_format: One of ``ARCHIVE_MODES``.
        header_template: Header to clone, defaults to make_header_template().

    Returns:
        Number of entries visited.

    Raises:
        ValueError: If archive_format is unknown.
        Exception: The first entry evaluation failure.
    """
    mode = ARCHIVE_MODES.get(archive_format)
    if mode is None:
        msg = f"Unknown archive format {archive_format!r}, expected one of {', '.join(ARCHIVE_MODES)}"
        raise ValueError(msg)

    template = header_template or make_header_template()
    count = 0
    with tarfile.open(fileobj=fileobj, mode=mode, format=tarfile.PAX_FORMAT) as writer:
        for entry in sorted(entries, key=lambda e: e.target_name):
            entry.archive(writer, template, umask)
            count += 1
    logger.debug("Archived %d entries", count)
    return count
