# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Configuration file handling.

The configuration file can be a YAML (.yaml, .yml) or a JSON file:

    run_scripts: true
    parsers:
      - id: my-compiler
        name: My compiler
        regexp: '^(.+):(\\d+): (warning|error): (.*)$'
        expression: >-
          builder.set_file_name(groups[0]).set_line_start(groups[1])
          .set_priority(groups[2]).set_message(groups[3]).build()
        example: 'main.c:42: warning: unused variable'

The CC_RUN_SCRIPTS environment variable overrides the 'run_scripts' value.
"""

import os

from typing import Dict, List, Optional

from . import util
from .definition import ParserDefinition
from .logger import get_logger
from .permission import StaticScriptPermission
from .registry import ParserRegistry

LOG = get_logger('dynamic-parser')

RUN_SCRIPTS_ENV_VAR = 'CC_RUN_SCRIPTS'


class ConfigError(Exception):
    pass


class Config:
    def __init__(
        self,
        run_scripts: bool = True,
        parsers: Optional[List[ParserDefinition]] = None
    ):
        self.run_scripts = run_scripts
        self.parsers = parsers if parsers else []

    def permission(self) -> StaticScriptPermission:
        """ Permission to run mapping expressions. """
        return StaticScriptPermission(self.run_scripts)

    def create_registry(self) -> ParserRegistry:
        """ Creates a registry of the configured parsers.

        Raises DuplicateId if the same ID is configured multiple times.
        """
        return ParserRegistry(self.parsers)

    @classmethod
    def from_json(cls, data: Dict) -> 'Config':
        run_scripts = data.get('run_scripts', True)
        if isinstance(run_scripts, str):
            run_scripts = util.strtobool(run_scripts)

        parsers = data.get('parsers') or []
        if not isinstance(parsers, list):
            raise ConfigError("The 'parsers' option should be a list.")

        if not all(isinstance(p, dict) for p in parsers):
            raise ConfigError("Every parser definition should be a mapping.")

        return cls(bool(run_scripts),
                   [ParserDefinition.from_json(p) for p in parsers])


def load_config(config_file: Optional[str] = None) -> Config:
    """
    Load the given configuration file. Default configuration is used if no
    file is given.

    Raises FileNotFoundError if the given file doesn't exist and ConfigError
    if it can't be loaded.
    """
    cfg = Config()
    if config_file:
        if not os.path.exists(config_file):
            raise FileNotFoundError(
                f"Configuration file '{config_file}' does not exist.")

        data = util.load_config_file(config_file)
        if not isinstance(data, dict):
            raise ConfigError(
                f"Failed to load configuration file '{config_file}'.")

        cfg = Config.from_json(data)
        LOG.debug("Configuration loaded from '%s'.", config_file)

    run_scripts = os.environ.get(RUN_SCRIPTS_ENV_VAR)
    if run_scripts is not None:
        cfg.run_scripts = util.strtobool(run_scripts)

    return cfg
