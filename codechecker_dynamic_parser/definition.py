# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Parser definitions and their validation.

A parser definition consists of a regular expression which finds the
diagnostics in a log and a mapping expression which converts a match of the
regular expression to an issue. An example log text can be given to verify
the parser while it's being written.
"""

import json

from typing import Dict, List, Optional, TYPE_CHECKING

from . import util
from .errors import CompilationError, DuplicateId, EvaluationError, \
    NoMatch, PermissionDenied, Truncated, WrongReturnType
from .expression import ExpressionCompiler, evaluate, get_compiler
from .issue import Issue, IssueBuilder
from .logger import get_logger
from .parser import DynamicParser, ParserMode, compile_regexp, \
    find_first_match, select_mode
from .permission import ScriptPermission
from .validation import ValidationResult

if TYPE_CHECKING:
    from .registry import ParserRegistry

LOG = get_logger('dynamic-parser')

MAX_EXAMPLE_SIZE = 4096
MAX_MESSAGE_LENGTH = 60

MSG_ID_EMPTY = "The ID of the parser must not be empty."
MSG_ID_NOT_UNIQUE = "The ID of the parser is already used by '{0}'."
MSG_NAME_EMPTY = "The name of the parser must not be empty."
MSG_REGEXP_EMPTY = "The regular expression must not be empty."
MSG_REGEXP_INVALID = "Invalid regular expression: {0}"
MSG_EXPRESSION_EMPTY = "The mapping expression must not be empty."
MSG_EXPRESSION_INVALID = "Invalid mapping expression: {0}"
MSG_NO_RUN_SCRIPT_PERMISSION = \
    "You are not allowed to run mapping expressions, so the expression " \
    "and the example can't be checked."
MSG_EXAMPLE_TRUNCATED = \
    "The example is longer than {0} characters and will be truncated."
MSG_EXAMPLE_NO_MATCH = \
    "The regular expression pattern does not match the example text."
MSG_EXAMPLE_EXCEPTION = "Exception during parsing of the example: {0}"
MSG_EXAMPLE_WRONG_RETURN_TYPE = \
    "The result of the mapping expression is not an issue: {0}"
MSG_EXAMPLE_OK_TITLE = "One issue found"
MSG_EXAMPLE_OK_FILE = "file name: {0}"
MSG_EXAMPLE_OK_LINE = "line number: {0}"
MSG_EXAMPLE_OK_PRIORITY = "priority: {0}"
MSG_EXAMPLE_OK_CATEGORY = "category: {0}"
MSG_EXAMPLE_OK_TYPE = "type: {0}"
MSG_EXAMPLE_OK_MESSAGE = "message: {0}"


class ParserDefinition:
    """ Defines a log parser by a regular expression and an expression
    which maps a match of the regular expression to an issue. """

    def __init__(
        self,
        id: str,
        name: str,
        regexp: str,
        expression: str,
        example: Optional[str] = ''
    ):
        self.id = id
        self.name = name
        self.regexp = regexp
        self.expression = expression
        self.example = example

    @property
    def example(self) -> str:
        """ Example log text which should be resolved to an issue. """
        return self.__example

    @example.setter
    def example(self, example: Optional[str]):
        """ Sets the example. Too long examples are truncated. """
        example = example or ''
        self.__example = example[:MAX_EXAMPLE_SIZE]

    def has_multiline_support(self) -> bool:
        """ Returns True if the parser scans messages spanning multiple
        lines. """
        return self.mode == ParserMode.DOCUMENT

    @property
    def mode(self) -> ParserMode:
        return select_mode(self.regexp or '')

    def is_valid(self, validator: 'ParserValidator') -> bool:
        """ Returns True if the name, the regular expression and the
        expression of this definition are valid.

        Validity is not cached because the permissions of the validator
        may change.
        """
        return validator.validate_definition(self).is_valid()

    def create_parser(
        self,
        compiler: Optional[ExpressionCompiler] = None
    ) -> DynamicParser:
        """ Creates a new parser instance.

        Raises CompilationError if the regular expression or the expression
        is invalid.
        """
        return DynamicParser(self, compiler)

    def to_json(self) -> Dict:
        """ Creates a JSON dictionary. """
        return {
            "id": self.id,
            "name": self.name,
            "regexp": self.regexp,
            "expression": self.expression,
            "example": self.example}

    @classmethod
    def from_json(cls, data: Dict) -> 'ParserDefinition':
        """ Creates a parser definition from a JSON dictionary. """
        return cls(str(data.get("id") or ""),
                   str(data.get("name") or ""),
                   str(data.get("regexp") or ""),
                   str(data.get("expression") or ""),
                   str(data.get("example") or ""))

    def __eq__(self, other):
        if isinstance(other, ParserDefinition):
            return self.to_json() == other.to_json()

        raise NotImplementedError(
            f"Comparison ParserDefinition object with '{type(other)}' is "
            "not supported")

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return json.dumps(self.to_json())


class ValidationReport:
    """ Results of the checks of a parser definition. """

    def __init__(
        self,
        name: ValidationResult,
        regexp: ValidationResult,
        expression: ValidationResult,
        example: ValidationResult
    ):
        self.name = name
        self.regexp = regexp
        self.expression = expression
        self.example = example

    def is_valid(self) -> bool:
        """ The example doesn't need to work for a valid definition, so a
        parser can be saved while its example is being written. """
        return self.name.is_ok and self.regexp.is_ok and \
            self.expression.is_ok

    def results(self) -> List[ValidationResult]:
        return [self.name, self.regexp, self.expression, self.example]

    def result(self) -> ValidationResult:
        """ Aggregated result of every check. """
        return ValidationResult.aggregate(self.results())

    def __repr__(self):
        return f"ValidationReport(name={self.name!r}, " \
            f"regexp={self.regexp!r}, expression={self.expression!r}, " \
            f"example={self.example!r})"


def _summary_line(okay_message: List[str], message: str):
    okay_message.append(util.truncate_middle(message, MAX_MESSAGE_LENGTH))


def format_issue(issue: Issue) -> str:
    """ Human readable summary of the given issue. """
    okay_message = [MSG_EXAMPLE_OK_TITLE]
    _summary_line(okay_message, MSG_EXAMPLE_OK_FILE.format(issue.file_name))
    _summary_line(okay_message, MSG_EXAMPLE_OK_LINE.format(issue.line_start))
    _summary_line(okay_message, MSG_EXAMPLE_OK_PRIORITY.format(
        issue.priority))
    _summary_line(okay_message, MSG_EXAMPLE_OK_CATEGORY.format(
        issue.category))
    _summary_line(okay_message, MSG_EXAMPLE_OK_TYPE.format(issue.type))
    _summary_line(okay_message, MSG_EXAMPLE_OK_MESSAGE.format(issue.message))

    return '\n'.join(okay_message)


class ParserValidator:
    """ Validates the properties of parser definitions. """

    def __init__(
        self,
        permission: ScriptPermission,
        compiler: Optional[ExpressionCompiler] = None,
        registry: Optional['ParserRegistry'] = None
    ):
        self.permission = permission
        self.compiler = compiler if compiler else get_compiler()
        self.__registry = registry

    @property
    def registry(self) -> 'ParserRegistry':
        if self.__registry is None:
            from .registry import get_registry
            return get_registry()

        return self.__registry

    def _is_not_allowed_to_run_scripts(self) -> bool:
        return not self.permission.can_run_scripts()

    def _no_permission_warning(self) -> ValidationResult:
        return ValidationResult.warning(
            MSG_NO_RUN_SCRIPT_PERMISSION,
            PermissionDenied(MSG_NO_RUN_SCRIPT_PERMISSION))

    def check_id(self, parser_id: str) -> ValidationResult:
        """ The ID needs to be unique. """
        if util.is_blank(parser_id):
            return ValidationResult.error(MSG_ID_EMPTY)

        registry = self.registry
        if registry.contains(parser_id):
            existing_name = registry.lookup(parser_id).name
            return ValidationResult.error(
                MSG_ID_NOT_UNIQUE.format(existing_name),
                DuplicateId(parser_id, existing_name))

        return ValidationResult.ok()

    def check_name(self, name: str) -> ValidationResult:
        if util.is_blank(name):
            return ValidationResult.error(MSG_NAME_EMPTY)

        return ValidationResult.ok()

    def check_regexp(self, regexp: str) -> ValidationResult:
        if util.is_blank(regexp):
            return ValidationResult.error(MSG_REGEXP_EMPTY)

        try:
            compile_regexp(regexp)
        except CompilationError as ex:
            return ValidationResult.error(MSG_REGEXP_INVALID.format(ex), ex)

        return ValidationResult.ok()

    def check_expression(self, expression: str) -> ValidationResult:
        if self._is_not_allowed_to_run_scripts():
            return self._no_permission_warning()

        if util.is_blank(expression):
            return ValidationResult.error(MSG_EXPRESSION_EMPTY)

        try:
            self.compiler.compile(expression)
        except CompilationError as ex:
            return ValidationResult.error(
                MSG_EXPRESSION_INVALID.format(ex), ex)

        return ValidationResult.ok()

    def check_example(
        self,
        example: str,
        regexp: str,
        expression: str
    ) -> ValidationResult:
        """ Parses the example with the given regular expression and
        expression.

        Returns an OK result with the summary of the issue if the example
        can be resolved to an issue.
        """
        if self._is_not_allowed_to_run_scripts():
            return self._no_permission_warning()

        if util.is_blank(example) or util.is_blank(regexp) or \
                util.is_blank(expression):
            return ValidationResult.ok()

        response = self._parse_example(
            example[:MAX_EXAMPLE_SIZE], regexp, expression)
        if len(example) <= MAX_EXAMPLE_SIZE:
            return response

        return ValidationResult.aggregate([
            ValidationResult.warning(
                MSG_EXAMPLE_TRUNCATED.format(MAX_EXAMPLE_SIZE),
                Truncated(len(example), MAX_EXAMPLE_SIZE)),
            response])

    def _parse_example(
        self,
        example: str,
        regexp: str,
        expression: str
    ) -> ValidationResult:
        mode = select_mode(regexp)
        try:
            pattern = compile_regexp(regexp, mode)
        except CompilationError as ex:
            return ValidationResult.error(MSG_REGEXP_INVALID.format(ex), ex)

        try:
            compiled = self.compiler.compile(expression)
        except CompilationError as ex:
            return ValidationResult.error(
                MSG_EXPRESSION_INVALID.format(ex), ex)

        found = find_first_match(pattern, example, mode)
        if found is None:
            return ValidationResult.error(
                MSG_EXAMPLE_NO_MATCH, NoMatch(MSG_EXAMPLE_NO_MATCH))

        match, line_number = found
        try:
            issue = evaluate(compiled, match, IssueBuilder(), 0, line_number)
        except WrongReturnType as ex:
            return ValidationResult.error(
                MSG_EXAMPLE_WRONG_RETURN_TYPE.format(ex.value), ex)
        except EvaluationError as ex:
            return ValidationResult.error(
                MSG_EXAMPLE_EXCEPTION.format(ex), ex)

        return ValidationResult.ok(format_issue(issue))

    def validate(
        self,
        name: str,
        regexp: str,
        expression: str,
        example: str = ''
    ) -> ValidationReport:
        """ Runs every check on the given parser properties. """
        report = ValidationReport(
            self.check_name(name),
            self.check_regexp(regexp),
            self.check_expression(expression),
            self.check_example(example, regexp, expression))

        LOG.debug("Validation of parser '%s': %s", name, report)
        return report

    def validate_definition(
        self,
        definition: ParserDefinition
    ) -> ValidationReport:
        return self.validate(definition.name, definition.regexp,
                             definition.expression, definition.example)
