# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Scans log output with a regular expression and converts every match to an
issue by using a mapping expression.

Two scanning modes are supported:
  - LINE: the regular expression is applied to every line of the log
    separately. At most one issue is created from a line.
  - DOCUMENT: the regular expression is applied to the whole log in multi-line
    mode so a single match may span multiple lines.

The mode is selected by the regular expression itself: if it contains a
'\\n' or '\\r' escape sequence the DOCUMENT mode is used.
"""

import os
import re

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple, TYPE_CHECKING

from .errors import EvaluationError, RegexCompilationError
from .expression import CompiledExpression, ExpressionCompiler, \
    evaluate, get_compiler
from .issue import Issue, IssueBuilder
from .logger import get_logger

if TYPE_CHECKING:
    from .definition import ParserDefinition

LOG = get_logger('dynamic-parser')


class ParserMode(Enum):
    """ Scanning modes of the dynamic parsers. """
    LINE = 'line'
    DOCUMENT = 'document'


def contains_newline(regexp: str) -> bool:
    """ Returns True if the regular expression contains a new line or a
    carriage return escape sequence. """
    return '\\n' in regexp or '\\r' in regexp


def select_mode(regexp: str) -> ParserMode:
    """ Select the scanning mode for the given regular expression. """
    return ParserMode.DOCUMENT if contains_newline(regexp) \
        else ParserMode.LINE


def compile_regexp(
    regexp: str,
    mode: Optional[ParserMode] = None
) -> re.Pattern:
    """ Compiles the given regular expression for the given mode.

    Raises RegexCompilationError if the regular expression is invalid.
    """
    if mode is None:
        mode = select_mode(regexp)

    flags = re.MULTILINE if mode == ParserMode.DOCUMENT else 0
    try:
        return re.compile(regexp, flags)
    except re.error as ex:
        raise RegexCompilationError(regexp, str(ex)) from ex


@dataclass
class ScanError:
    """ A match which could not be converted to an issue. """
    match_index: int
    line_number: int
    text: str
    message: str

    def to_json(self):
        """ Creates a JSON dictionary. """
        return {
            "match_index": self.match_index,
            "line_number": self.line_number,
            "text": self.text,
            "message": self.message}


@dataclass
class ScanResult:
    """ Issues and errors of a scan in the order of their discovery. """
    issues: List[Issue] = field(default_factory=list)
    errors: List[ScanError] = field(default_factory=list)

    def __iter__(self):
        return iter(self.issues)

    def __len__(self):
        return len(self.issues)


def _split_lines(text: str) -> List[str]:
    """ Split the text to lines without line terminators. """
    lines = text.split('\n')
    if lines and not lines[-1]:
        lines.pop()

    return [line[:-1] if line.endswith('\r') else line for line in lines]


def iter_matches(
    pattern: re.Pattern,
    text: str,
    mode: ParserMode
) -> Iterator[Tuple[re.Match, int]]:
    """ Iterate over the matches of the pattern in the given text.

    Yields a tuple of the match and the 1-based line number where the match
    starts.
    """
    if mode == ParserMode.LINE:
        for line_idx, line in enumerate(_split_lines(text)):
            match = pattern.search(line)
            if match:
                yield match, line_idx + 1
    else:
        line_number = 1
        last_pos = 0
        for match in pattern.finditer(text):
            line_number += text.count('\n', last_pos, match.start())
            last_pos = match.start()
            yield match, line_number


def find_first_match(
    pattern: re.Pattern,
    text: str,
    mode: ParserMode
) -> Optional[Tuple[re.Match, int]]:
    """ Returns the first match and its line number or None. """
    return next(iter_matches(pattern, text, mode), None)


def scan(
    text: str,
    pattern: re.Pattern,
    compiled: CompiledExpression,
    mode: ParserMode,
    file_name: str = '',
    origin: str = ''
) -> ScanResult:
    """ Scan the given text and create an issue from every match.

    If the expression fails on a match the error is recorded in the result
    and the scan continues with the next match.
    """
    result = ScanResult()
    for match_index, (match, line_number) in enumerate(
            iter_matches(pattern, text, mode)):
        try:
            issue = evaluate(compiled, match, IssueBuilder(), match_index,
                             line_number, file_name)
        except EvaluationError as ex:
            LOG.warning("Failed to create issue from line %d: %s",
                        line_number, ex)
            result.errors.append(ScanError(
                match_index, line_number, match.group(0), str(ex)))
            continue

        if origin and not issue.origin:
            issue.origin = origin

        result.issues.append(issue)

    LOG.debug("%d issue(s) and %d error(s) found in '%s'.",
              len(result.issues), len(result.errors), file_name)

    return result


class DynamicParser:
    """ Log parser created from a parser definition. """

    def __init__(
        self,
        definition: 'ParserDefinition',
        compiler: Optional[ExpressionCompiler] = None
    ):
        if compiler is None:
            compiler = get_compiler()

        self.definition = definition
        self.mode = definition.mode
        self.pattern = compile_regexp(definition.regexp, self.mode)
        self.expression = compiler.compile(definition.expression)

    def parse(self, text: str, file_name: str = '') -> ScanResult:
        """ Parse the given log content. """
        return scan(text, self.pattern, self.expression, self.mode,
                    file_name, self.definition.id)

    def parse_file(self, file_path: str) -> ScanResult:
        """ Parse the given log file. """
        if not os.path.exists(file_path):
            LOG.error("Log file does not exists: %s", file_path)
            return ScanResult()

        if os.path.isdir(file_path):
            LOG.error("Directory is given instead of a file: %s", file_path)
            return ScanResult()

        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            return self.parse(f.read(), file_path)

    def get_reports(self, file_path: str) -> List[Issue]:
        """ Returns the issues found in the given log file. """
        return self.parse_file(file_path).issues
