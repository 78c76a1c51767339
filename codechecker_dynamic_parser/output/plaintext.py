# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
""" Helper and converter functions for plain text format. """

from collections import Counter
from typing import List

from codechecker_dynamic_parser.issue import Issue
from codechecker_dynamic_parser.parser import ScanError, ScanResult


def format_issue(issue: Issue) -> str:
    """ Format one issue. """
    out = f"[{issue.priority.value.upper()}] {issue.file_name}:" \
          f"{issue.line_start}: {issue.message}"

    labels = [label for label in (issue.category, issue.type) if label]
    if labels:
        out += f" [{'/'.join(labels)}]"

    return out


def format_error(error: ScanError) -> str:
    """ Format a match which failed to be converted to an issue. """
    return f"[FAILED] line {error.line_number}: {error.message}"


def convert(result: ScanResult) -> List[str]:
    """ Convert the given scan result to plain text lines. """
    lines = [format_issue(issue) for issue in result.issues]
    lines.extend(format_error(error) for error in result.errors)

    priorities = Counter(issue.priority.value for issue in result.issues)
    summary = ', '.join(f"{priority}: {count}" for priority, count
                        in sorted(priorities.items()))

    lines.append(f"Found {len(result.issues)} issue(s)" +
                 (f" ({summary})" if summary else "") + ".")
    if result.errors:
        lines.append(f"Failed to process {len(result.errors)} match(es).")

    return lines
