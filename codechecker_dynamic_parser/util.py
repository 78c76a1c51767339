# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Util module.
"""
import json
import os

import portalocker
import yaml

from codechecker_dynamic_parser.logger import get_logger

LOG = get_logger('dynamic-parser')

ELLIPSIS = "[...]"


def is_blank(value) -> bool:
    """ Returns True if the given value is None or contains only
    whitespace characters. """
    return value is None or not str(value).strip()


def is_yaml_file(path: str) -> bool:
    """ Returns True if the given file should be handled as a YAML file. """
    return path.endswith(('.yaml', '.yml'))


def truncate_middle(text: str, max_length: int) -> str:
    """
    Shorten the given text if it's longer than max_length by keeping the
    beginning and the end of it and putting an ellipsis marker between them.
    E.g.: truncate_middle("0123456789", 6) => "01[...]89"
    """
    if len(text) <= max_length:
        return text

    size = max_length // 2 - 1
    return text[:size] + ELLIPSIS + text[len(text) - size:]


def strtobool(value: str) -> bool:
    """Parse a string value to a boolean."""
    return value.lower() in ('y', 'yes', 't', 'true', 'on', '1')


def load_json(path: str, default=None, lock=False, display_warning=True):
    """
    Load the contents of the given file as a JSON and return it's value,
    or default if the file can't be loaded.

    path -- JSON file path to load.
    defaut -- Value to return if JSON can't be loaded for some reason (e.g
              file doesn't exist, bad JSON format, etc.)
    lock -- Use portalocker to lock the JSON file for shared use.
    display_warning -- Display warning messages why the JSON file can't be
                       loaded (e.g. bad format, failed to open file, etc.)
    """

    ret = default
    try:
        with open(path, 'r', encoding='utf-8', errors='ignore') as handle:
            if lock:
                portalocker.lock(handle, portalocker.LOCK_SH)

            ret = json.load(handle)

            if lock:
                portalocker.unlock(handle)
    except OSError as ex:
        if display_warning:
            LOG.warning("Failed to open json file: %s", path)
            LOG.warning(ex)
    except ValueError as ex:
        if display_warning:
            LOG.warning("%s is not a valid json file.", path)
            LOG.warning(ex)
    except TypeError as ex:
        if display_warning:
            LOG.warning('Failed to process json file: %s', path)
            LOG.warning(ex)

    return ret


def load_yaml(path: str, lock=False):
    """
    Load the contents of the given file as a YAML and return it's value.
    """

    try:
        with open(path, "r", encoding="utf-8") as f:
            if lock:
                portalocker.lock(f, portalocker.LOCK_SH)

            ret = yaml.safe_load(f)

            if lock:
                portalocker.unlock(f)

            return ret
    except OSError as ex:
        LOG.warning("Failed to open YAML file: %s", path)
        LOG.warning(ex)
        return None
    except yaml.YAMLError as ex:
        LOG.warning("Failed to parse YAML file: %s", path)
        LOG.warning(ex)
        return None


def load_config_file(path: str, default=None, lock=False):
    """
    Load the given YAML or JSON file based on its extension. Returns default
    if the file can't be loaded.
    """
    if is_yaml_file(path):
        data = load_yaml(path, lock)
        return default if data is None else data

    return load_json(path, default, lock)


def dump_config_file(data, path: str):
    """
    Write the given data to a YAML or JSON file based on its extension.
    The file is locked exclusively while it's being written.
    """
    dir_path = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(dir_path):
        os.makedirs(dir_path)

    with open(path, 'a+', encoding='utf-8', errors='ignore') as handle:
        portalocker.lock(handle, portalocker.LOCK_EX)
        try:
            handle.seek(0)
            handle.truncate()

            if is_yaml_file(path):
                yaml.safe_dump(data, handle, default_flow_style=False,
                               sort_keys=False, allow_unicode=True)
            else:
                json.dump(data, handle, indent=2)

            handle.flush()
        finally:
            portalocker.unlock(handle)
