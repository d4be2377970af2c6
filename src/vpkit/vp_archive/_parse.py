import logging

from typing import List, Tuple, Set

from vpkit.binary_utils.BinaryReader import BinaryReader

from . import VPHeader, ArchiveEntry, DirectoryStackUnderflowError, EmptyEntryNameError, \
    InvalidDirectoryCountError, VP_MAGIC, VP_RECORD_SIZE, VP_NAME_FIELD_SIZE, VP_PARENT_MARKER


LOG = logging.getLogger(__name__)


def parse_vp_header(container_bytes: bytes) -> VPHeader:
    return _read_header(BinaryReader(container_bytes, big_endian=False))


def parse_vp_directory(container_bytes: bytes) -> List[ArchiveEntry]:
    reader = BinaryReader(container_bytes, big_endian=False)

    header = _read_header(reader)

    if header.directory_entry_count < 0:
        raise InvalidDirectoryCountError(header.directory_entry_count)

    table = reader.window(
        header.directory_offset, header.directory_entry_count * VP_RECORD_SIZE, meaning='directory table'
    )

    entries = []
    # Each element is the full path of an open directory; the bottom one is the root and is never popped
    path_stack: List[Tuple[str, ...]] = [()]
    seen_paths: Set[Tuple[str, ...]] = set()

    for index in range(header.directory_entry_count):
        offset, size = table.read_struct('II', 'entry offset and size')
        name = table.read_padded_string(VP_NAME_FIELD_SIZE, 'entry name')
        timestamp = table.read_uint32('entry timestamp')

        if name == VP_PARENT_MARKER:
            if len(path_stack) == 1:
                raise DirectoryStackUnderflowError(index)

            path_stack.pop()
            continue

        if name == '':
            raise EmptyEntryNameError(index)

        entry = ArchiveEntry(
            index=index,
            offset=offset,
            size=size,
            name=name,
            timestamp=timestamp,
            full_path=path_stack[-1] + (name,),
        )

        if entry.full_path in seen_paths:
            LOG.debug("Record #%d repeats the path %s; lookups will find the earlier entry", index, entry.path)
        seen_paths.add(entry.full_path)

        if entry.is_directory:
            path_stack.append(entry.full_path)

        entries.append(entry)

    if len(path_stack) > 1:
        LOG.debug("Directory table ends with %d directories still open", len(path_stack) - 1)

    LOG.debug(
        "Parsed %d VP entries from %d directory records (version %d)",
        len(entries), header.directory_entry_count, header.version
    )

    return entries


def _read_header(reader: BinaryReader) -> VPHeader:
    reader.expect_magic(VP_MAGIC, 'VP signature')

    version, directory_offset, directory_entry_count = reader.read_struct('iii', 'VP header')

    return VPHeader(
        version=version,
        directory_offset=directory_offset,
        directory_entry_count=directory_entry_count,
    )
