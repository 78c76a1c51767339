# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------

""" Test the parser registry. """


import json
import os
import shutil
import tempfile
import threading
import unittest

import yaml

from codechecker_dynamic_parser.definition import ParserDefinition, \
    ParserValidator
from codechecker_dynamic_parser.errors import DuplicateId, ParserNotFound
from codechecker_dynamic_parser.permission import ALLOW_SCRIPTS
from codechecker_dynamic_parser.registry import ParserRegistry, \
    get_registry, reset_registry


def make_definition(parser_id, name='Parser'):
    return ParserDefinition(
        parser_id, name, r"^(\S+):(\d+): (.*)$",
        "builder.set_file_name(groups[0]).set_line_start(groups[1])"
        ".set_message(groups[2]).build()",
        "main.c:1: message")


class ParserRegistryTestCase(unittest.TestCase):
    """ Test registering and looking up parser definitions. """

    def setUp(self):
        self.registry = ParserRegistry()
        self.workspace = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.workspace)

    def test_register_and_lookup(self):
        definition = make_definition('foo', 'Foo')
        self.registry.register(definition)

        self.assertIs(self.registry.lookup('foo'), definition)
        self.assertIn('foo', self.registry)
        self.assertTrue(self.registry.contains('foo'))
        self.assertEqual(len(self.registry), 1)

    def test_duplicate_id(self):
        """ Second registration with the same ID fails. """
        self.registry.register(make_definition('foo', 'First'))

        with self.assertRaises(DuplicateId) as ctx:
            self.registry.register(make_definition('foo', 'Second'))

        self.assertEqual(ctx.exception.parser_id, 'foo')
        self.assertEqual(ctx.exception.existing_name, 'First')
        self.assertIn('First', str(ctx.exception))
        self.assertEqual(self.registry.lookup('foo').name, 'First')

    def test_not_found(self):
        with self.assertRaises(ParserNotFound) as ctx:
            self.registry.lookup('missing')

        self.assertIn('missing', str(ctx.exception))

        with self.assertRaises(KeyError):
            self.registry.remove('missing')

    def test_replace_and_remove(self):
        self.registry.register(make_definition('foo', 'First'))
        self.registry.replace(make_definition('foo', 'Second'))

        self.assertEqual(self.registry.lookup('foo').name, 'Second')

        removed = self.registry.remove('foo')
        self.assertEqual(removed.name, 'Second')
        self.assertNotIn('foo', self.registry)

    def test_order_of_definitions(self):
        for parser_id in ['c', 'a', 'b']:
            self.registry.register(make_definition(parser_id))

        self.assertEqual([d.id for d in self.registry], ['c', 'a', 'b'])

        self.registry.reset()
        self.assertEqual(self.registry.definitions(), [])

    def test_snapshot_is_not_changed(self):
        """ Readers keep a consistent list of definitions. """
        self.registry.register(make_definition('a'))
        definitions = self.registry.definitions()

        self.registry.register(make_definition('b'))

        self.assertEqual(len(definitions), 1)
        self.assertEqual(len(self.registry.definitions()), 2)

    def test_concurrent_registration(self):
        """ Every ID is registered exactly once from multiple threads. """
        errors = []

        def register(parser_id):
            try:
                self.registry.register(make_definition(parser_id))
            except DuplicateId as ex:
                errors.append(ex)

        threads = [threading.Thread(target=register, args=(str(i % 10),))
                   for i in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(self.registry), 10)
        self.assertEqual(len(errors), 40)

    def test_save_and_load_yaml(self):
        self.registry.register(make_definition('foo', 'Foo'))
        self.registry.register(make_definition('bar', 'Bar'))

        config_file = os.path.join(self.workspace, 'parsers.yaml')
        self.registry.save(config_file)

        with open(config_file, encoding='utf-8') as f:
            data = yaml.safe_load(f)
        self.assertEqual([p['id'] for p in data['parsers']], ['foo', 'bar'])

        registry = ParserRegistry()
        self.assertEqual(registry.load(config_file), 2)
        self.assertEqual(registry.lookup('foo'), self.registry.lookup('foo'))

    def test_load_json_list(self):
        config_file = os.path.join(self.workspace, 'parsers.json')
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump([make_definition('foo').to_json()], f)

        self.assertEqual(self.registry.load(config_file), 1)

        with self.assertRaises(DuplicateId):
            self.registry.load(config_file)

        self.assertEqual(self.registry.load(config_file, replace=True), 1)

    def test_failed_load_keeps_registry(self):
        """ Nothing is registered if an ID of the file is already used. """
        self.registry.register(make_definition('b', 'Old B'))

        config_file = os.path.join(self.workspace, 'parsers.json')
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump([make_definition('a').to_json(),
                       make_definition('b', 'New B').to_json()], f)

        with self.assertRaises(DuplicateId) as ctx:
            self.registry.load(config_file)

        self.assertEqual(ctx.exception.existing_name, 'Old B')
        self.assertEqual([d.id for d in self.registry], ['b'])
        self.assertEqual(self.registry.lookup('b').name, 'Old B')

    def test_repeated_id_in_file(self):
        """ IDs must be unique in the loaded file even with replace. """
        config_file = os.path.join(self.workspace, 'parsers.json')
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump([make_definition('a', 'First').to_json(),
                       make_definition('c').to_json(),
                       make_definition('a', 'Second').to_json()], f)

        with self.assertRaises(DuplicateId) as ctx:
            self.registry.load(config_file, replace=True)

        self.assertEqual(ctx.exception.existing_name, 'First')
        self.assertEqual(len(self.registry), 0)

    def test_save_overwrites(self):
        config_file = os.path.join(self.workspace, 'parsers.json')
        self.registry.register(make_definition('foo'))
        self.registry.register(make_definition('bar'))
        self.registry.save(config_file)

        self.registry.remove('bar')
        self.registry.save(config_file)

        registry = ParserRegistry()
        registry.load(config_file)
        self.assertEqual([d.id for d in registry], ['foo'])


class ProcessRegistryTestCase(unittest.TestCase):
    """ Test the process wide registry. """

    def tearDown(self):
        reset_registry()

    def test_same_instance(self):
        self.assertIs(get_registry(), get_registry())

    def test_reset(self):
        get_registry().register(make_definition('foo'))
        reset_registry()

        self.assertNotIn('foo', get_registry())

    def test_validator_uses_process_registry(self):
        """ ID uniqueness is checked in the process wide registry. """
        get_registry().register(make_definition('foo', 'Foo'))
        validator = ParserValidator(ALLOW_SCRIPTS)

        self.assertTrue(validator.check_id('foo').is_error)
        self.assertTrue(validator.check_id('bar').is_ok)
