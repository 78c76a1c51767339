# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
""" Results of the parser definition checks. """

from enum import IntEnum
from typing import Iterable, List, Optional


class Kind(IntEnum):
    """ Kind of a validation result. A greater value is more severe. """
    OK = 0
    WARNING = 1
    ERROR = 2

    def __str__(self):
        return self.name


class ValidationResult:
    """ Outcome of a validation with a human readable message. """

    def __init__(
        self,
        kind: Kind,
        message: str = '',
        cause: Optional[Exception] = None,
        children: Optional[List['ValidationResult']] = None
    ):
        self.kind = kind
        self.message = message
        self.cause = cause
        self.children = children if children else []

    @classmethod
    def ok(cls, message: str = '') -> 'ValidationResult':
        return cls(Kind.OK, message)

    @classmethod
    def warning(
        cls,
        message: str,
        cause: Optional[Exception] = None
    ) -> 'ValidationResult':
        return cls(Kind.WARNING, message, cause)

    @classmethod
    def error(
        cls,
        message: str,
        cause: Optional[Exception] = None
    ) -> 'ValidationResult':
        return cls(Kind.ERROR, message, cause)

    @classmethod
    def aggregate(
        cls,
        results: Iterable['ValidationResult']
    ) -> 'ValidationResult':
        """ Combines the given results into one result.

        The most severe kind wins. The messages of the results are joined
        by new lines.
        """
        results = list(results)
        if not results:
            return cls.ok()

        kind = max(r.kind for r in results)
        message = '\n'.join(r.message for r in results if r.message)

        # Keep the cause of the most severe result.
        cause = next((r.cause for r in results
                      if r.kind == kind and r.cause is not None), None)

        return cls(kind, message, cause, results)

    @property
    def is_ok(self) -> bool:
        return self.kind == Kind.OK

    @property
    def is_warning(self) -> bool:
        return self.kind == Kind.WARNING

    @property
    def is_error(self) -> bool:
        return self.kind == Kind.ERROR

    def __str__(self):
        if not self.message:
            return str(self.kind)

        return f"{self.kind!s}: {self.message}"

    def __repr__(self):
        return f"ValidationResult({self.kind!s}, {self.message!r})"
