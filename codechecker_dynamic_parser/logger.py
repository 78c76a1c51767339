# -------------------------------------------------------------------------
#
#  Part of the CodeChecker project, under the Apache License v2.0 with
#  LLVM Exceptions. See LICENSE for license information.
#  SPDX-License-Identifier: Apache-2.0 WITH LLVM-exception
#
# -------------------------------------------------------------------------


import argparse
import json
import logging
from logging import config
import os
import threading

# The logging leaves can be accesses without
# importing the logging module in other modules.
DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL
NOTSET = logging.NOTSET

CMDLINE_LOG_LEVELS = ['info', 'debug_expression', 'debug']

DEBUG_EXPRESSION = logging.DEBUG_EXPRESSION = 15  # type: ignore
logging.addLevelName(DEBUG_EXPRESSION, 'DEBUG_EXPRESSION')


class DynamicParserLogger(logging.Logger):
    def debug_expression(self, msg, *args, **kwargs):
        """ Log a message about the evaluation of a mapping expression. """
        if self.isEnabledFor(DEBUG_EXPRESSION):
            self._log(DEBUG_EXPRESSION, msg, args, **kwargs)


# Guards the temporary change of the global logger class in get_logger.
_logger_class_lock = threading.Lock()


data_files_dir_path = os.environ.get('CC_DATA_FILES_DIR', '')
DEFAULT_LOG_CFG_FILE = os.path.join(data_files_dir_path, 'config',
                                    'logger.conf')


# Default config which can be used if reading log config from a
# file fails.
DEFAULT_LOG_CONFIG = '''{
  "version": 1,
  "disable_existing_loggers": false,
  "formatters": {
    "brief": {
      "format": "[%(levelname)s] - %(message)s"
    },
    "precise": {
      "format": "[%(levelname)s] [%(asctime)s] {%(name)s} [%(process)d] \
<%(thread)d> - %(filename)s:%(lineno)d %(funcName)s() - %(message)s",
      "datefmt": "%Y-%m-%d %H:%M"
    }
  },
  "handlers": {
    "default": {
      "level": "INFO",
      "formatter": "brief",
      "class": "logging.StreamHandler",
      "stream": "ext://sys.stderr"
    }
  },
  "loggers": {
    "dynamic-parser": {
      "handlers": ["default"],
      "level": "INFO",
      "propagate": false
    }
  }
}'''


if os.path.isfile(DEFAULT_LOG_CFG_FILE):
    try:
        with open(DEFAULT_LOG_CFG_FILE, 'r',
                  encoding="utf-8", errors="ignore") as dlc:
            DEFAULT_LOG_CONFIG = dlc.read()
    except IOError as ex:
        print(ex)
        print("Failed to load logger configuration. Using built-in config.")


def add_verbose_arguments(parser):
    """
    Verbosity level arguments.
    """
    parser.add_argument('--verbose', type=str, dest='verbose',
                        choices=CMDLINE_LOG_LEVELS,
                        default=argparse.SUPPRESS,
                        help='Set verbosity level.')


def get_logger(name) -> DynamicParserLogger:
    """
    Return a logger instance if already exists with the given name.
    New loggers are created as DynamicParserLogger, the logger class of
    other loggers in the process is not changed.
    """
    with _logger_class_lock:
        logger_class = logging.getLoggerClass()
        logging.setLoggerClass(DynamicParserLogger)
        try:
            return logging.getLogger(name)  # type: ignore
        finally:
            logging.setLoggerClass(logger_class)


def validate_loglvl(log_level):
    """
    Should return a valid log level name
    """
    log_level = log_level.upper()

    if log_level not in {lev.upper() for lev in CMDLINE_LOG_LEVELS}:
        return "INFO"

    return log_level


def setup_logger(log_level=None, stream=None):
    """
    Modifies the log configuration.
    Overwrites the log levels for the loggers and handlers in the
    configuration.
    Redirects the output of all handlers to the given stream. Short names can
    be given (stderr -> ext://sys.stderr, 'stdout' -> ext://sys.stdout).
    """

    log_config = json.loads(DEFAULT_LOG_CONFIG)
    if log_level:
        log_level = validate_loglvl(log_level)

        loggers = log_config.get("loggers", {})
        for k in loggers.keys():
            log_config['loggers'][k]['level'] = log_level

        handlers = log_config.get("handlers", {})
        for k in handlers.keys():
            log_config['handlers'][k]['level'] = log_level
            if log_level in ('DEBUG', 'DEBUG_EXPRESSION'):
                log_config['handlers'][k]['formatter'] = 'precise'

    if stream:
        if stream == 'stderr':
            stream = 'ext://sys.stderr'
        elif stream == 'stdout':
            stream = 'ext://sys.stdout'

        handlers = log_config.get("handlers", {})
        for k in handlers.keys():
            handler = log_config['handlers'][k]
            if 'stream' in handler:
                handler['stream'] = stream

    config.dictConfig(log_config)
