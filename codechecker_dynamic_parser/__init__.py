# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Dynamic log parser: converts log output to issues by using user defined
regular expressions and mapping expressions.
"""

__title__ = 'codechecker_dynamic_parser'
__version__ = '0.1.0'
