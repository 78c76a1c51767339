# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Process wide registry of the parser definitions.
"""

import threading

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from . import util
from .definition import ParserDefinition
from .errors import DuplicateId, ParserNotFound
from .logger import get_logger

LOG = get_logger('dynamic-parser')


class ParserRegistry:
    """
    Collection of parser definitions with unique IDs.

    Mutations are serialized and every mutation publishes a new read-only
    snapshot of the definitions, so readers never need a lock and always see
    a consistent state.
    """

    def __init__(self, definitions: Iterable[ParserDefinition] = ()):
        self.__lock = threading.Lock()
        self.__snapshot: Mapping[str, ParserDefinition] = \
            MappingProxyType({})

        for definition in definitions:
            self.register(definition)

    def __publish(self, parsers: Dict[str, ParserDefinition]):
        self.__snapshot = MappingProxyType(parsers)

    def register(self, definition: ParserDefinition):
        """ Adds a new definition.

        Raises DuplicateId if a definition is already registered with the
        same ID.
        """
        with self.__lock:
            existing = self.__snapshot.get(definition.id)
            if existing is not None:
                raise DuplicateId(definition.id, existing.name)

            parsers = dict(self.__snapshot)
            parsers[definition.id] = definition
            self.__publish(parsers)

        LOG.debug("Parser '%s' (%s) registered.", definition.id,
                  definition.name)

    def register_all(
        self,
        definitions: Iterable[ParserDefinition],
        replace: bool = False
    ):
        """ Adds every given definition or none of them.

        Raises DuplicateId if replace is False and an ID is already
        registered. Repeated IDs among the given definitions always raise
        DuplicateId.
        """
        with self.__lock:
            parsers = dict(self.__snapshot)
            added: Dict[str, ParserDefinition] = {}
            for definition in definitions:
                existing = added.get(definition.id)
                if existing is None and not replace:
                    existing = parsers.get(definition.id)

                if existing is not None:
                    raise DuplicateId(definition.id, existing.name)

                added[definition.id] = definition

            parsers.update(added)
            self.__publish(parsers)

    def replace(self, definition: ParserDefinition):
        """ Adds the definition or replaces the one with the same ID. """
        with self.__lock:
            parsers = dict(self.__snapshot)
            parsers[definition.id] = definition
            self.__publish(parsers)

    def remove(self, parser_id: str) -> ParserDefinition:
        """ Removes the definition with the given ID.

        Raises ParserNotFound if there is no such definition.
        """
        with self.__lock:
            parsers = dict(self.__snapshot)
            if parser_id not in parsers:
                raise ParserNotFound(parser_id)

            definition = parsers.pop(parser_id)
            self.__publish(parsers)

        return definition

    def lookup(self, parser_id: str) -> ParserDefinition:
        """ Returns the definition with the given ID.

        Raises ParserNotFound if there is no such definition.
        """
        definition = self.__snapshot.get(parser_id)
        if definition is None:
            raise ParserNotFound(parser_id)

        return definition

    def contains(self, parser_id: str) -> bool:
        return parser_id in self.__snapshot

    def definitions(self) -> List[ParserDefinition]:
        """ Returns the definitions in order of their registration. """
        return list(self.__snapshot.values())

    def reset(self):
        """ Removes every definition. """
        with self.__lock:
            self.__publish({})

    def load(self, path: str, replace: bool = False) -> int:
        """
        Registers the parser definitions of the given YAML or JSON file.

        The file may contain a list of definitions or a dictionary with a
        'parsers' key. Returns the number of loaded definitions. Raises
        DuplicateId if replace is False and an ID is already registered or
        if an ID is repeated in the file. Nothing is registered on failure.
        """
        data = util.load_config_file(path, default=[], lock=True)
        if isinstance(data, dict):
            data = data.get('parsers') or []

        if not isinstance(data, list):
            LOG.warning("No parser definitions found in '%s'.", path)
            return 0

        definitions = [ParserDefinition.from_json(d) for d in data
                       if isinstance(d, dict)]
        if len(definitions) != len(data):
            LOG.warning("%d entries of '%s' are not parser definitions and "
                        "were skipped.", len(data) - len(definitions), path)

        self.register_all(definitions, replace)

        LOG.info("%d parser definition(s) loaded from '%s'.",
                 len(definitions), path)
        return len(definitions)

    def save(self, path: str):
        """ Writes every definition to the given YAML or JSON file. """
        util.dump_config_file(
            {'parsers': [d.to_json() for d in self.definitions()]}, path)

        LOG.info("%d parser definition(s) saved to '%s'.",
                 len(self.__snapshot), path)

    def __contains__(self, parser_id):
        return self.contains(parser_id)

    def __len__(self):
        return len(self.__snapshot)

    def __iter__(self):
        return iter(self.definitions())


_registry: Optional[ParserRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> ParserRegistry:
    """ Returns the process wide registry. It's created on first use. """
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ParserRegistry()

    return _registry


def reset_registry():
    """ Drops the process wide registry. Used by the tests. """
    global _registry
    with _registry_lock:
        _registry = None
