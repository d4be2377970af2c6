"""
Extraction of VP archive entries to disk.

Entry names come from untrusted data, so every path segment is validated before anything is written: a name such as
``..`` or one containing a path separator would otherwise let an archive write outside the destination directory.

Output files are opened exclusively by default, so existing files are never clobbered unless explicitly allowed. If
writing a file fails midway, the partial file is removed so that the destination only ever holds complete entries.
"""

import logging
import os

from contextlib import contextmanager
from pathlib import Path, PurePath
from typing import List, Tuple, ContextManager, BinaryIO

from vpkit.errors import MalformedStructureError
from vpkit.vp_archive import ArchiveEntry
from vpkit.vp_archive.access import VPArchive, PathType


LOG = logging.getLogger(__name__)


def extract_entry(archive: VPArchive, entry: ArchiveEntry, dest_path: PathType, overwrite: bool = False) -> Path:
    """
    Writes the payload of a single file entry to `dest_path`.

    Args:
        archive: The archive the entry belongs to.
        entry: The entry to extract. Must be a file.
        dest_path: The path of the output file. Its parent directory must exist.
        overwrite: If False (the default), fail if the output file already exists.

    Returns:
        The path of the written file.

    Raises:
        ValueError: If the entry is a directory.
        FileExistsError: If the output file exists and `overwrite` is False.
        TruncatedInputError: If the entry's payload extends past the end of the container.
    """
    if entry.is_directory:
        raise ValueError(f"{entry.description()} is a directory and cannot be extracted as a file")

    data = archive.read_entry(entry)
    dest_path = Path(dest_path)

    with _open_output_file(dest_path, overwrite) as f:
        f.write(data)

    LOG.debug("Extracted %s to %s", entry.description(), dest_path)

    return dest_path


def extract_all(archive: VPArchive, dest_dir: PathType, overwrite: bool = False) -> List[Path]:
    """
    Extracts all entries of an archive under `dest_dir`, recreating the archive's directory structure.

    The paths of all entries are validated up front, so an unsafe archive is rejected before any file is written.

    Returns:
        The paths of the extracted files (directories are not included), in archive order.

    Raises:
        UnsafeEntryPathError: If any entry has a name that is unsafe to use as a path component.
        FileExistsError: If an output file exists and `overwrite` is False.
    """
    dest_dir = Path(dest_dir)
    entries = archive.entries

    targets = [(entry, dest_dir.joinpath(*safe_relative_path(entry).parts)) for entry in entries]

    dest_dir.mkdir(parents=True, exist_ok=True)

    written = []

    for entry, target in targets:
        if entry.is_directory:
            target.mkdir(parents=True, exist_ok=True)
            continue

        target.parent.mkdir(parents=True, exist_ok=True)
        written.append(extract_entry(archive, entry, target, overwrite=overwrite))

    LOG.info("Extracted %d files to %s", len(written), dest_dir)

    return written


def safe_relative_path(entry: ArchiveEntry) -> PurePath:
    """
    Converts an entry's path to a relative path that is guaranteed to stay inside the directory it is joined to.

    Raises:
        UnsafeEntryPathError: If any segment of the path is empty, a dot name, or contains a path separator.
    """
    for segment in entry.full_path:
        if _is_unsafe_segment(segment):
            raise UnsafeEntryPathError(entry.index, entry.full_path, segment)

    return PurePath(*entry.full_path)


def _is_unsafe_segment(segment: str) -> bool:
    return (
        segment in ('', '.', '..') or
        '/' in segment or
        '\\' in segment or
        '\x00' in segment or
        (len(segment) >= 2 and segment[1] == ':')
    )


@contextmanager
def _open_output_file(path: Path, overwrite: bool) -> ContextManager[BinaryIO]:
    handle = open(path, 'wb' if overwrite else 'xb')

    try:
        with handle:
            yield handle
    except BaseException:
        try:
            os.unlink(path)
        except OSError as e:
            LOG.warning("Could not remove partially written file %s: %s", path, e)

        raise


class UnsafeEntryPathError(MalformedStructureError):
    record_index: int
    full_path: Tuple[str, ...]
    segment: str

    def __init__(self, record_index: int, full_path: Tuple[str, ...], segment: str):
        self.record_index = record_index
        self.full_path = full_path
        self.segment = segment

        super().__init__(
            f"Entry #{record_index} ('{'/'.join(full_path)}') has a path component {segment!r} that is unsafe to "
            f"extract"
        )
