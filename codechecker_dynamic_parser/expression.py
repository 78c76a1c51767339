# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Compiles and evaluates the mapping expressions of the dynamic parsers.

A mapping expression is a single Python expression which converts one match
of a regular expression to an issue. The following names can be used in the
expression:

  - match: the regular expression match object (re.Match).
  - groups: tuple of the matching groups (match.groups()).
  - builder: an IssueBuilder instance.
  - match_index: 0-based index of the match in the current scan.
  - line_number: 1-based line number where the match starts.
  - file_name: name of the scanned log file (may be empty).
  - Priority: the issue priority enumeration.

E.g.:
  builder.set_file_name(groups[0]).set_line_start(groups[1])
         .set_message(groups[2]).build()

Expressions are not allowed to access names or attributes starting with an
underscore and only a restricted set of builtin functions is available.
"""

import ast
import builtins
import threading

from collections import OrderedDict
from typing import Dict, Optional

from .errors import EvaluationError, ExpressionCompilationError, \
    WrongReturnType
from .issue import Issue, IssueBuilder, Priority
from .logger import get_logger

LOG = get_logger('dynamic-parser')

EXPRESSION_FILE_NAME = '<expression>'

MAX_CACHE_SIZE = 256

SAFE_BUILTIN_NAMES = [
    'abs', 'all', 'any', 'bool', 'dict', 'enumerate', 'float', 'int', 'len',
    'list', 'max', 'min', 'reversed', 'round', 'set', 'sorted', 'str', 'sum',
    'tuple', 'zip']

SAFE_BUILTINS = {name: getattr(builtins, name) for name in SAFE_BUILTIN_NAMES}

# String formatting methods can access attributes of their arguments without
# any attribute node in the syntax tree.
FORBIDDEN_ATTRIBUTES = {'format', 'format_map'}

# Frame, code and traceback attributes of generators, coroutines and
# tracebacks give access to the globals and the builtins of the evaluation.
FORBIDDEN_ATTRIBUTE_PREFIXES = ('gi_', 'cr_', 'ag_', 'f_', 'tb_', 'co_')

ALLOWED_NODES = (
    ast.Expression, ast.BoolOp, ast.BinOp, ast.UnaryOp, ast.IfExp,
    ast.Compare, ast.Call, ast.keyword, ast.Constant, ast.Attribute,
    ast.Subscript, ast.Slice, ast.Name, ast.Starred, ast.List, ast.Tuple,
    ast.Dict, ast.Set, ast.JoinedStr, ast.FormattedValue, ast.ListComp,
    ast.SetComp, ast.DictComp, ast.GeneratorExp, ast.comprehension,
    ast.boolop, ast.operator, ast.unaryop, ast.cmpop, ast.expr_context)


class _SandboxChecker(ast.NodeVisitor):
    """ Verifies that the syntax tree contains only allowed constructs. """

    def __init__(self, expression: str):
        self.expression = expression

    def _error(self, node, message):
        line = getattr(node, 'lineno', 1)
        col = getattr(node, 'col_offset', 0) + 1
        raise ExpressionCompilationError(
            self.expression, f"{message} (line {line}, column {col})")

    def generic_visit(self, node):
        if not isinstance(node, ALLOWED_NODES):
            self._error(node, f"'{type(node).__name__}' is not allowed in "
                              "an expression")

        super().generic_visit(node)

    def visit_Name(self, node):
        if node.id.startswith('_'):
            self._error(node, f"Access to name '{node.id}' is not allowed")

        self.generic_visit(node)

    def visit_Attribute(self, node):
        if node.attr.startswith(('_',) + FORBIDDEN_ATTRIBUTE_PREFIXES) or \
                node.attr in FORBIDDEN_ATTRIBUTES:
            self._error(node,
                        f"Access to attribute '{node.attr}' is not allowed")

        self.generic_visit(node)


class CompiledExpression:
    """ Executable form of a mapping expression. """

    def __init__(self, expression: str, code):
        self.__expression = expression
        self.__code = code

    @property
    def expression(self) -> str:
        """ Source text of the expression. """
        return self.__expression

    def run(self, variables: Dict):
        """ Executes the expression with the given variables and returns the
        result of the expression. """
        # Every run gets its own globals so the runs can't affect each other.
        # Variables are globals to be visible in comprehension scopes too.
        run_globals = dict(variables)
        run_globals['__builtins__'] = dict(SAFE_BUILTINS)
        return eval(self.__code, run_globals)  # pylint: disable=eval-used

    def __repr__(self):
        return f"CompiledExpression({self.__expression!r})"


def compile_expression(expression: str) -> CompiledExpression:
    """ Compiles the given expression text without using any cache.

    Raises ExpressionCompilationError if the text is not a valid expression.
    """
    try:
        tree = ast.parse(expression.strip(), EXPRESSION_FILE_NAME, 'eval')
    except SyntaxError as ex:
        message = ex.msg
        if ex.lineno:
            message += f" (line {ex.lineno}, column {ex.offset})"
        raise ExpressionCompilationError(expression, message) from ex
    except ValueError as ex:
        # E.g. source code string contains null bytes.
        raise ExpressionCompilationError(expression, str(ex)) from ex

    _SandboxChecker(expression).visit(tree)

    code = compile(tree, EXPRESSION_FILE_NAME, 'eval')
    return CompiledExpression(expression, code)


class ExpressionCompiler:
    """ Compiles expressions and caches the results by expression text.

    At most max_size expressions are kept, the least recently used one is
    dropped first.
    """

    def __init__(self, max_size: int = MAX_CACHE_SIZE):
        self.max_size = max_size
        self.__cache: 'OrderedDict[str, CompiledExpression]' = OrderedDict()
        self.__lock = threading.Lock()

    def compile(self, expression: str) -> CompiledExpression:
        """ Returns the compiled form of the given expression.

        Raises ExpressionCompilationError if the expression is invalid.
        Invalid expressions are not cached.
        """
        with self.__lock:
            compiled = self.__cache.get(expression)
            if compiled is not None:
                self.__cache.move_to_end(expression)
                return compiled

        # Compile outside of the lock, two threads may compile the same text
        # but only the first result is stored.
        compiled = compile_expression(expression)
        LOG.debug("Expression compiled: %s", expression)

        with self.__lock:
            compiled = self.__cache.setdefault(expression, compiled)
            self.__cache.move_to_end(expression)
            while len(self.__cache) > self.max_size:
                self.__cache.popitem(last=False)

            return compiled

    def clear(self):
        """ Removes every compiled expression from the cache. """
        with self.__lock:
            self.__cache.clear()

    def __len__(self):
        return len(self.__cache)

    def __contains__(self, expression):
        return expression in self.__cache


_compiler: Optional[ExpressionCompiler] = None
_compiler_lock = threading.Lock()


def get_compiler() -> ExpressionCompiler:
    """ Returns the process wide expression compiler. """
    global _compiler
    if _compiler is None:
        with _compiler_lock:
            if _compiler is None:
                _compiler = ExpressionCompiler()

    return _compiler


def evaluate(
    compiled: CompiledExpression,
    match,
    builder: IssueBuilder,
    match_index: int,
    line_number: Optional[int] = None,
    file_name: str = ''
) -> Issue:
    """ Runs the given expression on one regular expression match.

    Returns the issue created by the expression. Raises EvaluationError if
    the expression raises an exception and WrongReturnType if the result of
    the expression is not an issue.
    """
    variables = {
        'match': match,
        'groups': match.groups(),
        'builder': builder,
        'match_index': match_index,
        'line_number': line_number,
        'file_name': file_name,
        'Priority': Priority}

    LOG.debug_expression("Evaluating expression on match %d: %s",
                         match_index, match.group(0))

    try:
        result = compiled.run(variables)
    except Exception as ex:
        raise EvaluationError(f"{type(ex).__name__}: {ex}") from ex

    if not isinstance(result, Issue):
        raise WrongReturnType(result)

    return result
