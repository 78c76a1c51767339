# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
""" JSON output helpers. """

from typing import Dict

from codechecker_dynamic_parser.parser import ScanResult


def convert(result: ScanResult) -> Dict:
    """ Convert the given scan result to JSON format. """
    version = 1

    json_issues = []
    for issue in result.issues:
        json_issues.append(issue.to_json())

    return {
        "version": version,
        "issues": json_issues,
        "errors": [error.to_json() for error in result.errors]}
