"""
Configuration for the `vpkit` command-line tool.

Settings are read from a JSON file, validated against `CONFIG_SCHEMA` before use. The file is looked up as follows:

- the path given explicitly (e.g. via ``--config``)
- the path in the ``VPKIT_CONFIG`` environment variable
- ``~/.config/vpkit/config.json``, if it exists

If no file is found, the defaults in `VPKitConfig` apply. Example::

    {
        "log_level": "INFO",
        "text_encoding": "cp1252",
        "text_preview_lines": 20,
        "format_overrides": {"tbm": "text", "dds": "unknown"},
        "overwrite": false
    }
"""

import codecs
import json
import os

import jsonschema

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union, Any

from vpkit.formats import EntryFormat, parse_format_name


CONFIG_ENV_VAR = 'VPKIT_CONFIG'
DEFAULT_CONFIG_PATH = Path('~/.config/vpkit/config.json')

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')

CONFIG_SCHEMA = {
    'type': 'object',
    'properties': {
        'log_level': {'type': 'string', 'enum': list(LOG_LEVELS)},
        'text_encoding': {'type': 'string', 'format': 'text-encoding'},
        'text_preview_lines': {'type': 'integer', 'minimum': 1},
        'format_overrides': {
            'type': 'object',
            'additionalProperties': {'type': 'string', 'enum': [f.value for f in EntryFormat]},
        },
        'overwrite': {'type': 'boolean'},
    },
    'additionalProperties': False,
}

CONFIG_FORMAT_CHECKER = jsonschema.FormatChecker()


@CONFIG_FORMAT_CHECKER.checks('text-encoding', raises=LookupError)
def _is_known_encoding(value: Any) -> bool:
    if not isinstance(value, str):
        return True

    codecs.lookup(value)

    return True


@dataclass(frozen=True)
class VPKitConfig:
    log_level: str = 'WARNING'
    text_encoding: str = 'latin-1'
    text_preview_lines: int = 40
    format_overrides: Mapping[str, EntryFormat] = field(default_factory=dict)
    overwrite: bool = False


def config_from_json(json_data: Any) -> VPKitConfig:
    """
    Builds a configuration object from already-parsed JSON data.

    Raises:
        jsonschema.exceptions.ValidationError: If the data does not match `CONFIG_SCHEMA`, or names a text encoding
            that Python does not know.
    """
    jsonschema.validate(json_data, CONFIG_SCHEMA, format_checker=CONFIG_FORMAT_CHECKER)

    defaults = VPKitConfig()

    return VPKitConfig(
        log_level=json_data.get('log_level', defaults.log_level),
        text_encoding=json_data.get('text_encoding', defaults.text_encoding),
        text_preview_lines=json_data.get('text_preview_lines', defaults.text_preview_lines),
        format_overrides={
            ext.lower().lstrip('.'): parse_format_name(name)
            for ext, name in json_data.get('format_overrides', {}).items()
        },
        overwrite=json_data.get('overwrite', defaults.overwrite),
    )


def find_config_file(explicit_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    if explicit_path is not None:
        return Path(explicit_path)

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    default_path = DEFAULT_CONFIG_PATH.expanduser()

    return default_path if default_path.is_file() else None


def load_config(explicit_path: Optional[Union[str, Path]] = None) -> VPKitConfig:
    """
    Locates and loads the configuration file, as described in the module documentation.

    Raises:
        ConfigError: If the file cannot be read, is not valid JSON, or does not match the schema. A path given
            explicitly or via the environment must exist.
    """
    path = find_config_file(explicit_path)
    if path is None:
        return VPKitConfig()

    try:
        with open(path, 'rt', encoding='utf-8') as f:
            json_data = json.load(f)
    except OSError as e:
        raise ConfigError(path, f"cannot be read ({e.strerror or e})") from e
    except json.JSONDecodeError as e:
        raise ConfigError(path, f"is not valid JSON ({e.msg} at line {e.lineno}, column {e.colno})") from e

    try:
        return config_from_json(json_data)
    except jsonschema.exceptions.ValidationError as e:
        location = '/'.join(str(part) for part in e.absolute_path) or '(top level)'

        raise ConfigError(path, f"is invalid at {location}: {e.message}") from e


class ConfigError(Exception):
    path: Path

    def __init__(self, path: Path, problem: str):
        self.path = path

        super().__init__(f"Configuration file {path} {problem}")
