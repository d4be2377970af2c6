"""
Classification of archive entries by the kind of content they hold.

The format of an entry is resolved once, from its name, into an `EntryFormat` value. Code that needs to handle
entries differently then dispatches on that value instead of comparing extensions again.
"""

from enum import Enum
from typing import Mapping, Optional


class EntryFormat(Enum):
    ARCHIVE = 'archive'
    RASTER = 'raster'
    TEXT = 'text'
    AUDIO = 'audio'
    ANIMATION = 'animation'
    MODEL = 'model'
    UNKNOWN = 'unknown'

    @property
    def is_decodable(self) -> bool:
        """
        True for formats this package can interpret (as opposed to only extract as raw bytes).
        """
        return self in (EntryFormat.ARCHIVE, EntryFormat.RASTER, EntryFormat.TEXT)


FORMATS_BY_EXTENSION: Mapping[str, EntryFormat] = {
    'vp': EntryFormat.ARCHIVE,
    'pcx': EntryFormat.RASTER,
    'txt': EntryFormat.TEXT,
    'hcf': EntryFormat.TEXT,
    'tbl': EntryFormat.TEXT,
    'tbm': EntryFormat.TEXT,
    'fs2': EntryFormat.TEXT,
    'fc2': EntryFormat.TEXT,
    'wav': EntryFormat.AUDIO,
    'ani': EntryFormat.ANIMATION,
    'pof': EntryFormat.MODEL,
}


def get_extension(name: str) -> str:
    """
    Returns the lowercase extension of a file name (without the dot), or ``''`` if it has none.
    """
    base = name.rsplit('/', 1)[-1]
    dot_pos = base.rfind('.')

    return '' if dot_pos <= 0 else base[dot_pos + 1:].lower()


def classify_name(name: str, overrides: Optional[Mapping[str, EntryFormat]] = None) -> EntryFormat:
    """
    Determines the format of an entry from its name.

    Args:
        name: The entry name (or full path; only the last component is considered).
        overrides: Extension to format mappings that take precedence over the built-in ones. Extensions are matched
            case-insensitively and should be given without the dot.
    """
    extension = get_extension(name)

    if overrides:
        for ext, entry_format in overrides.items():
            if ext.lower().lstrip('.') == extension:
                return entry_format

    return FORMATS_BY_EXTENSION.get(extension, EntryFormat.UNKNOWN)


def parse_format_name(value: str) -> EntryFormat:
    """
    Converts a format name as used in configuration files (e.g. ``'raster'``) to an `EntryFormat`.
    """
    try:
        return EntryFormat(value.lower())
    except ValueError:
        raise ValueError(
            f"Unknown entry format {value!r} (expected one of: {', '.join(f.value for f in EntryFormat)})"
        ) from None
