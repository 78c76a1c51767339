# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
"""
Permission to run user defined mapping expressions.

Mapping expressions are executed in the process of the caller, so the
embedding application decides who is allowed to run them.
"""

from typing import Protocol


class ScriptPermission(Protocol):
    def can_run_scripts(self) -> bool: ...


class StaticScriptPermission:
    """ Permission which is decided once, e.g. by configuration. """

    def __init__(self, allowed: bool = True):
        self.allowed = allowed

    def can_run_scripts(self) -> bool:
        return self.allowed

    def __repr__(self):
        return f"StaticScriptPermission({self.allowed})"


ALLOW_SCRIPTS = StaticScriptPermission(True)
DENY_SCRIPTS = StaticScriptPermission(False)
