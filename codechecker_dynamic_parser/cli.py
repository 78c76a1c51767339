#!/usr/bin/env python3
# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Dynamic parser command line.
"""


import argparse
import json
import sys

from typing import List, Optional

from codechecker_dynamic_parser import logger
from codechecker_dynamic_parser.config import ConfigError, load_config
from codechecker_dynamic_parser.definition import ParserValidator
from codechecker_dynamic_parser.errors import CompilationError, \
    DynamicParserError
from codechecker_dynamic_parser.output import USER_FORMATS
from codechecker_dynamic_parser.output import json as json_output
from codechecker_dynamic_parser.output import plaintext
from codechecker_dynamic_parser.validation import Kind

LOG = logger.get_logger('dynamic-parser')


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        """
        By default argparse will exit with error code 2 in case of error, but
        we are using exit code 1 for every kind of failure.
        """
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


class RawDescriptionDefaultHelpFormatter(
        argparse.RawDescriptionHelpFormatter,
        argparse.ArgumentDefaultsHelpFormatter
):
    """ Adds default values to argument help and retains any formatting in
    descriptions. """
    pass


def __add_common_arguments(parser):
    """ Add arguments which are used by every subcommand. """
    parser.add_argument('--config',
                        dest='config_file',
                        required=False,
                        default=argparse.SUPPRESS,
                        help="YAML or JSON configuration file which contains "
                             "the parser definitions.")

    logger.add_verbose_arguments(parser)


def __add_list_arguments(parser):
    parser.set_defaults(func=list_parsers)


def __add_validate_arguments(parser):
    parser.add_argument('--id',
                        dest='parser_id',
                        required=False,
                        default=argparse.SUPPRESS,
                        help="Validate only the parser with the given ID.")

    parser.set_defaults(func=validate_parsers)


def __add_parse_arguments(parser):
    parser.add_argument('input',
                        type=str,
                        metavar='file',
                        help="Log file which will be parsed.")

    parser.add_argument('--id',
                        dest='parser_id',
                        required=True,
                        help="ID of the parser which will be used.")

    parser.add_argument('-e', '--export',
                        dest='export',
                        choices=USER_FORMATS,
                        default='json',
                        help="Output format of the issues.")

    parser.add_argument('-o', '--output',
                        dest='output_file',
                        required=False,
                        default=argparse.SUPPRESS,
                        help="Write the result to this file instead of the "
                             "standard output.")

    parser.set_defaults(func=parse_log)


def get_argparser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="dynamic-parser",
        description="""
Parse log files by user defined regular expressions and mapping expressions.
A mapping expression is a single Python expression which converts one match
of the regular expression to an issue.""",
        epilog="""
Example configuration file:
  parsers:
    - id: my-compiler
      name: My compiler
      regexp: '^(.+):(\\d+): (warning|error): (.*)$'
      expression: >-
        builder.set_file_name(groups[0]).set_line_start(groups[1])
        .set_priority(groups[2]).set_message(groups[3]).build()
      example: 'main.c:42: warning: unused variable'

Validate the parsers:
  dynamic-parser validate --config parsers.yaml

Parse a log file:
  dynamic-parser parse --config parsers.yaml --id my-compiler build.log""",
        formatter_class=RawDescriptionDefaultHelpFormatter)

    subparsers = parser.add_subparsers(title='available commands',
                                       dest='command')
    subparsers.required = True

    commands = [
        ('list', "List the configured parsers.", __add_list_arguments),
        ('validate', "Validate the configured parsers and their examples.",
         __add_validate_arguments),
        ('parse', "Parse a log file with a configured parser.",
         __add_parse_arguments)]

    for name, help_msg, add_arguments in commands:
        sc_parser = subparsers.add_parser(
            name, help=help_msg, description=help_msg,
            formatter_class=RawDescriptionDefaultHelpFormatter)
        __add_common_arguments(sc_parser)
        add_arguments(sc_parser)

    return parser


def list_parsers(args, cfg) -> int:
    """ Print the configured parsers. """
    for definition in cfg.create_registry().definitions():
        print(f"{definition.id}: {definition.name} "
              f"({definition.mode.value})")

    return 0


def validate_parsers(args, cfg) -> int:
    """ Validate the configured parsers. Returns 1 if any of the parsers is
    invalid. """
    registry = cfg.create_registry()
    definitions = registry.definitions()
    if 'parser_id' in args:
        definitions = [registry.lookup(args.parser_id)]

    validator = ParserValidator(cfg.permission(), registry=registry)

    ret = 0
    for definition in definitions:
        report = validator.validate_definition(definition)
        status = 'VALID' if report.is_valid() else 'INVALID'
        print(f"{definition.id} ({definition.name}): {status}")

        for title, result in zip(['name', 'regexp', 'expression', 'example'],
                                 report.results()):
            if result.kind != Kind.OK or result.message:
                message = result.message.replace('\n', '\n    ')
                print(f"  {title}: [{result.kind!s}] {message}")

        if not report.is_valid():
            ret = 1

    return ret


def parse_log(args, cfg) -> int:
    """ Parse the given log file and print the issues. """
    if not cfg.run_scripts:
        LOG.error("Running mapping expressions is disabled, so log files "
                  "can't be parsed.")
        return 1

    definition = cfg.create_registry().lookup(args.parser_id)
    try:
        parser = definition.create_parser()
    except CompilationError as ex:
        LOG.error("Parser '%s' is invalid: %s", definition.id, ex)
        return 1

    result = parser.parse_file(args.input)

    if args.export == 'json':
        content = json.dumps(json_output.convert(result), indent=2)
    else:
        content = '\n'.join(plaintext.convert(result))

    if 'output_file' in args:
        with open(args.output_file, 'w',
                  encoding='utf-8', errors='ignore') as f:
            f.write(content + '\n')
        LOG.info("Result of the parser was written to '%s'.",
                 args.output_file)
    else:
        print(content)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """ Dynamic parser main command line. """
    parser = get_argparser()
    args = parser.parse_args(argv)

    logger.setup_logger(args.verbose if 'verbose' in args else None)

    try:
        cfg = load_config(
            args.config_file if 'config_file' in args else None)
        return args.func(args, cfg)
    except (OSError, ConfigError, DynamicParserError) as ex:
        LOG.error(ex)
        return 1


if __name__ == "__main__":
    sys.exit(main())
