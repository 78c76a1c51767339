# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------
""" Issue records created by the dynamic parsers. """

import hashlib
import json

from enum import Enum
from typing import Dict, Optional, Union


class Priority(Enum):
    """ Priority of an issue. """
    HIGH = 'high'
    NORMAL = 'normal'
    LOW = 'low'

    @classmethod
    def from_string(cls, value: str) -> 'Priority':
        """ Returns the priority for the given (case insensitive) name.

        Besides the priority names the usual severity names of compilers
        and linters are accepted too.
        """
        priority = PRIORITY_ALIASES.get(value.strip().lower())
        if priority is None:
            raise ValueError(f"Unknown priority: '{value}'")

        return priority

    def __str__(self):
        return self.value


PRIORITY_ALIASES: Dict[str, Priority] = {
    'high': Priority.HIGH,
    'error': Priority.HIGH,
    'fatal': Priority.HIGH,
    'normal': Priority.NORMAL,
    'warning': Priority.NORMAL,
    'low': Priority.LOW,
    'info': Priority.LOW,
    'note': Priority.LOW,
    'style': Priority.LOW}


def _str_to_hash(string_to_hash: str, errors: str = 'ignore') -> str:
    """ Encodes the given string and generates a hash from it. """
    string_hash = string_to_hash.encode(encoding="utf-8", errors=errors)
    return hashlib.md5(string_hash).hexdigest()


class Issue:
    """ Represents one diagnostic which was found in a log. """

    def __init__(
        self,
        file_name: str = '',
        line_start: int = 0,
        priority: Priority = Priority.NORMAL,
        category: str = '',
        type: str = '',
        message: str = '',
        line_end: Optional[int] = None,
        column_start: int = 0,
        column_end: Optional[int] = None,
        origin: str = ''
    ):
        self.file_name = file_name
        self.line_start = line_start
        self.line_end = line_start if line_end is None else line_end
        self.column_start = column_start
        self.column_end = column_start if column_end is None else column_end
        self.priority = priority
        self.category = category
        self.type = type
        self.message = message
        self.origin = origin

    @property
    def fingerprint(self) -> str:
        """ Context free hash of the issue.

        The hash doesn't depend on the line number so an issue keeps its
        fingerprint if lines are added to or removed from the file.
        """
        return _str_to_hash('|||'.join([
            self.file_name, self.category, self.type, self.message]))

    def to_json(self) -> Dict:
        """ Creates a JSON dictionary. """
        return {
            "file_name": self.file_name,
            "line_start": self.line_start,
            "line_end": self.line_end,
            "column_start": self.column_start,
            "column_end": self.column_end,
            "priority": self.priority.value,
            "category": self.category,
            "type": self.type,
            "message": self.message,
            "origin": self.origin,
            "fingerprint": self.fingerprint}

    def __eq__(self, other):
        if isinstance(other, Issue):
            return self.file_name == other.file_name and \
                self.line_start == other.line_start and \
                self.line_end == other.line_end and \
                self.column_start == other.column_start and \
                self.column_end == other.column_end and \
                self.priority == other.priority and \
                self.category == other.category and \
                self.type == other.type and \
                self.message == other.message and \
                self.origin == other.origin

        raise NotImplementedError(
            f"Comparison Issue object with '{type(other)}' is not supported")

    def __hash__(self):
        return hash((self.file_name, self.line_start, self.message))

    def __repr__(self):
        return json.dumps(self.to_json())


class IssueBuilder:
    """ Mutable scratch object to create an issue.

    The setters return the builder itself so the calls can be chained in a
    single mapping expression:

        builder.set_file_name(groups[0]).set_line_start(groups[1]).build()
    """

    def __init__(self):
        self.__file_name = ''
        self.__line_start = 0
        self.__line_end: Optional[int] = None
        self.__column_start = 0
        self.__column_end: Optional[int] = None
        self.__priority = Priority.NORMAL
        self.__category = ''
        self.__type = ''
        self.__message = ''
        self.__origin = ''

    def set_file_name(self, file_name) -> 'IssueBuilder':
        self.__file_name = _to_str(file_name)
        return self

    def set_line_start(self, line) -> 'IssueBuilder':
        self.__line_start = _to_int(line)
        return self

    def set_line_end(self, line) -> 'IssueBuilder':
        self.__line_end = _to_int(line)
        return self

    def set_column_start(self, column) -> 'IssueBuilder':
        self.__column_start = _to_int(column)
        return self

    def set_column_end(self, column) -> 'IssueBuilder':
        self.__column_end = _to_int(column)
        return self

    def set_priority(self, priority: Union[Priority, str]) -> 'IssueBuilder':
        if not isinstance(priority, Priority):
            priority = Priority.from_string(_to_str(priority))

        self.__priority = priority
        return self

    # Severity is the usual name of the same property in compiler outputs.
    set_severity = set_priority

    def set_category(self, category) -> 'IssueBuilder':
        self.__category = _to_str(category)
        return self

    def set_type(self, issue_type) -> 'IssueBuilder':
        self.__type = _to_str(issue_type)
        return self

    def set_message(self, message) -> 'IssueBuilder':
        self.__message = _to_str(message)
        return self

    def set_origin(self, origin) -> 'IssueBuilder':
        self.__origin = _to_str(origin)
        return self

    def build(self) -> Issue:
        """ Creates a new issue from the actual state of the builder. """
        return Issue(self.__file_name, self.__line_start, self.__priority,
                     self.__category, self.__type, self.__message,
                     self.__line_end, self.__column_start, self.__column_end,
                     self.__origin)


def _to_str(value) -> str:
    """ Converts the given value to a stripped string, None to ''. """
    if value is None:
        return ''

    return str(value).strip()


def _to_int(value) -> int:
    """ Converts the given value (e.g. a matching group) to an int.

    Empty or missing values are converted to 0.
    """
    if value is None:
        return 0

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0

    return int(value)
