# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Exceptions raised by the dynamic parser.
"""


class DynamicParserError(Exception):
    pass


class CompilationError(DynamicParserError):
    pass


class RegexCompilationError(CompilationError):
    def __init__(self, regexp: str, message: str):
        super().__init__(message)
        self.regexp = regexp


class ExpressionCompilationError(CompilationError):
    def __init__(self, expression: str, message: str):
        super().__init__(message)
        self.expression = expression


class EvaluationError(DynamicParserError):
    pass


class WrongReturnType(EvaluationError):
    """ The expression was executed but its result is not an issue. """

    def __init__(self, value):
        super().__init__(
            f"Result of the expression is not an issue: {value!r}")
        self.value = value


class NoMatch(DynamicParserError):
    pass


class DuplicateId(DynamicParserError):
    def __init__(self, parser_id: str, existing_name: str):
        super().__init__(
            f"There is already a parser with ID '{parser_id}': "
            f"{existing_name}")
        self.parser_id = parser_id
        self.existing_name = existing_name


class ParserNotFound(DynamicParserError, KeyError):
    def __init__(self, parser_id: str):
        super().__init__(f"No parser is registered with ID '{parser_id}'")
        self.parser_id = parser_id

    def __str__(self):
        return self.args[0]


class PermissionDenied(DynamicParserError):
    pass


class Truncated(DynamicParserError):
    """ Informational: a text was longer than its limit and was truncated. """

    def __init__(self, length: int, max_length: int):
        super().__init__(
            f"The text is {length} characters long, only the first "
            f"{max_length} characters are used.")
        self.length = length
        self.max_length = max_length
