# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------

""" Test the compilation and the evaluation of mapping expressions. """


import re
import threading
import unittest

from codechecker_dynamic_parser.errors import EvaluationError, \
    ExpressionCompilationError, WrongReturnType
from codechecker_dynamic_parser.expression import EXPRESSION_FILE_NAME, \
    SAFE_BUILTINS, CompiledExpression, ExpressionCompiler, \
    compile_expression, evaluate, get_compiler
from codechecker_dynamic_parser.issue import Issue, IssueBuilder, Priority


SIMPLE_EXPRESSION = \
    "builder.set_file_name(groups[0]).set_line_start(groups[1])" \
    ".set_message(groups[2]).build()"

SIMPLE_REGEXP = re.compile(r"^(\S+):(\d+): (.*)$")


class ExpressionCompilerTestCase(unittest.TestCase):
    """ Test the expression compiler and its cache. """

    def setUp(self):
        self.compiler = ExpressionCompiler()

    def test_compile_valid_expression(self):
        """ Valid expression is compiled and cached. """
        compiled = self.compiler.compile(SIMPLE_EXPRESSION)

        self.assertEqual(compiled.expression, SIMPLE_EXPRESSION)
        self.assertIn(SIMPLE_EXPRESSION, self.compiler)
        self.assertEqual(len(self.compiler), 1)

    def test_compile_uses_cache(self):
        """ Same expression text is compiled only once. """
        first = self.compiler.compile(SIMPLE_EXPRESSION)
        second = self.compiler.compile(SIMPLE_EXPRESSION)

        self.assertIs(first, second)

    def test_clear_cache(self):
        """ Compiled expressions are removed from the cache. """
        first = self.compiler.compile(SIMPLE_EXPRESSION)
        self.compiler.clear()

        self.assertEqual(len(self.compiler), 0)
        self.assertIsNot(first, self.compiler.compile(SIMPLE_EXPRESSION))

    def test_recompile_gives_same_behaviour(self):
        """ Compiling the same text twice gives the same issues. """
        match = SIMPLE_REGEXP.search("main.c:42: unused variable")

        first = compile_expression(SIMPLE_EXPRESSION)
        second = compile_expression(SIMPLE_EXPRESSION)

        self.assertEqual(evaluate(first, match, IssueBuilder(), 0),
                         evaluate(second, match, IssueBuilder(), 0))

    def test_syntax_error(self):
        """ Syntax errors are reported with the compiler message. """
        with self.assertRaises(ExpressionCompilationError) as ctx:
            self.compiler.compile("builder.build(")

        self.assertTrue(str(ctx.exception))
        self.assertEqual(ctx.exception.expression, "builder.build(")
        self.assertNotIn("builder.build(", self.compiler)

    def test_statements_are_not_allowed(self):
        """ Only a single expression can be compiled. """
        with self.assertRaises(ExpressionCompilationError):
            self.compiler.compile("import os")

        with self.assertRaises(ExpressionCompilationError):
            self.compiler.compile("x = 1")

    def test_private_names_are_not_allowed(self):
        """ Names and attributes starting with an underscore are rejected. """
        with self.assertRaisesRegex(ExpressionCompilationError,
                                    "__import__"):
            self.compiler.compile("__import__('os').system('ls')")

        with self.assertRaisesRegex(ExpressionCompilationError,
                                    "is not allowed"):
            self.compiler.compile("builder.__class__.__bases__")

    def test_lambda_is_not_allowed(self):
        """ Lambda expressions are not part of the expression language. """
        with self.assertRaisesRegex(ExpressionCompilationError, "Lambda"):
            self.compiler.compile("(lambda: builder.build())()")

    def test_format_is_not_allowed(self):
        """ String formatting could access private attributes. """
        with self.assertRaisesRegex(ExpressionCompilationError, "format"):
            self.compiler.compile("'{0.__class__}'.format(builder)")

    def test_frame_attributes_are_not_allowed(self):
        """ Frames of generators give access to the builtins. """
        for expression in [
                "(x for x in []).gi_frame.f_builtins.pop('int')",
                "(x for x in []).gi_code.co_consts",
                "match.f_globals",
                "builder.tb_frame"]:
            with self.assertRaisesRegex(ExpressionCompilationError,
                                        "is not allowed"):
                self.compiler.compile(expression)

    def test_cache_is_bounded(self):
        """ Least recently used expressions are dropped from the cache. """
        compiler = ExpressionCompiler(max_size=2)

        compiler.compile("builder.set_message('a').build()")
        compiler.compile("builder.set_message('b').build()")
        compiler.compile("builder.set_message('a').build()")
        compiler.compile("builder.set_message('c').build()")

        self.assertEqual(len(compiler), 2)
        self.assertIn("builder.set_message('a').build()", compiler)
        self.assertIn("builder.set_message('c').build()", compiler)
        self.assertNotIn("builder.set_message('b').build()", compiler)

    def test_compile_from_multiple_threads(self):
        """ Every thread gets the same cached expression. """
        results = []

        def compile_it():
            results.append(self.compiler.compile(SIMPLE_EXPRESSION))

        threads = [threading.Thread(target=compile_it) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(results), 8)
        self.assertEqual(len(self.compiler), 1)
        cached = self.compiler.compile(SIMPLE_EXPRESSION)
        for compiled in results:
            self.assertEqual(compiled.expression, cached.expression)

    def test_process_wide_compiler(self):
        """ The same compiler instance is returned every time. """
        self.assertIs(get_compiler(), get_compiler())


class EvaluateTestCase(unittest.TestCase):
    """ Test the evaluation of compiled expressions. """

    def test_evaluate(self):
        """ Issue is created from the matching groups. """
        compiled = compile_expression(SIMPLE_EXPRESSION)
        match = SIMPLE_REGEXP.search("main.c:42: unused variable")

        issue = evaluate(compiled, match, IssueBuilder(), 0)

        self.assertEqual(issue.file_name, "main.c")
        self.assertEqual(issue.line_start, 42)
        self.assertEqual(issue.message, "unused variable")
        self.assertEqual(issue.priority, Priority.NORMAL)

    def test_context_variables(self):
        """ Match index, line number and file name can be used. """
        compiled = compile_expression(
            "builder.set_file_name(file_name).set_line_start(line_number)"
            ".set_category(match_index).set_type(match.group(0))"
            ".set_priority(Priority.HIGH).build()")
        match = re.search(r"error", "fatal error")

        issue = evaluate(compiled, match, IssueBuilder(), 3, 17, "build.log")

        self.assertEqual(issue.file_name, "build.log")
        self.assertEqual(issue.line_start, 17)
        self.assertEqual(issue.category, "3")
        self.assertEqual(issue.type, "error")
        self.assertEqual(issue.priority, Priority.HIGH)

    def test_comprehension_sees_variables(self):
        """ Variables are visible in comprehensions too. """
        compiled = compile_expression(
            "builder.set_message(' '.join([g + str(match_index) "
            "for g in groups])).build()")
        match = re.search(r"(a) (b)", "a b")

        issue = evaluate(compiled, match, IssueBuilder(), 1)

        self.assertEqual(issue.message, "a1 b1")

    def test_exception_in_expression(self):
        """ Exceptions of the expression are converted. """
        compiled = compile_expression(
            "builder.set_line_start(groups[0]).build()")
        match = re.search(r"(\w+)", "abc")

        with self.assertRaisesRegex(EvaluationError, "ValueError"):
            evaluate(compiled, match, IssueBuilder(), 0)

    def test_wrong_return_type(self):
        """ Result of the expression must be an issue. """
        compiled = compile_expression("'not an issue'")
        match = re.search(r"x", "x")

        with self.assertRaises(WrongReturnType) as ctx:
            evaluate(compiled, match, IssueBuilder(), 0)

        self.assertEqual(ctx.exception.value, 'not an issue')
        self.assertIn('not an issue', str(ctx.exception))

    def test_builtins_are_restricted(self):
        """ Only the safe builtin functions are available. """
        compiled = compile_expression("open('/etc/passwd')")
        match = re.search(r"x", "x")

        with self.assertRaisesRegex(EvaluationError, "NameError"):
            evaluate(compiled, match, IssueBuilder(), 0)

    def test_runs_are_isolated(self):
        """ Builder of one run is not visible in the next run. """
        compiled = compile_expression("builder.build()")
        match = re.search(r"x", "x")

        builder = IssueBuilder().set_message("first")
        self.assertEqual(evaluate(compiled, match, builder, 0).message,
                         "first")
        self.assertEqual(
            evaluate(compiled, match, IssueBuilder(), 1).message, "")

    def test_builtins_can_not_be_changed(self):
        """ Changing the builtins in one run doesn't affect other runs. """
        source = "(x for x in []).gi_frame.f_builtins.pop('int')"
        unchecked = CompiledExpression(
            source, compile(source, EXPRESSION_FILE_NAME, 'eval'))
        match = re.search(r"(\d+)", "42")

        with self.assertRaises(WrongReturnType):
            evaluate(unchecked, match, IssueBuilder(), 0)

        self.assertIn('int', SAFE_BUILTINS)

        compiled = compile_expression(
            "builder.set_line_start(int(groups[0])).build()")
        self.assertEqual(
            evaluate(compiled, match, IssueBuilder(), 1).line_start, 42)

    def test_returns_issue_instance(self):
        """ The expression may create the issue from the builder only. """
        compiled = compile_expression(SIMPLE_EXPRESSION)
        match = SIMPLE_REGEXP.search("a.c:1: m")

        self.assertIsInstance(
            evaluate(compiled, match, IssueBuilder(), 0), Issue)
