# Azure Custom Script Extension
#
# Copyright 2018 Microsoft Corporation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
"""
Log utils

Log lines are written as key/value pairs (logfmt), e.g.

    time=2026-10-17T10:00:00.000000Z level=INFO version=1.0.0 operation=enable seq=3 msg=start

The values tagging every line of an invocation (version, operation, sequence number) are carried by a
context logger created with Logger.with_context(); that logger is passed explicitly to the components
that log on behalf of the invocation.
"""
import sys
from datetime import datetime, timezone


class Logger(object):
    """
    Logger class
    """
    def __init__(self, logger=None, context=None):
        self.appenders = []
        self.logger = self if logger is None else logger
        self.context = [] if context is None else list(context)

    def with_context(self, **values):
        """
        Returns a new logger that writes to the same appenders as this one and tags each line with the
        context of this logger followed by the given values.
        """
        return Logger(logger=self.logger, context=self.context + list(values.items()))

    def verbose(self, msg_format, *args, **fields):
        self.log(LogLevel.VERBOSE, msg_format, *args, **fields)

    def info(self, msg_format, *args, **fields):
        self.log(LogLevel.INFO, msg_format, *args, **fields)

    def warn(self, msg_format, *args, **fields):
        self.log(LogLevel.WARNING, msg_format, *args, **fields)

    def error(self, msg_format, *args, **fields):
        self.log(LogLevel.ERROR, msg_format, *args, **fields)

    def log(self, level, msg_format, *args, **fields):
        if len(args) > 0:
            msg = msg_format.format(*args)
        else:
            msg = msg_format

        # This format is based on ISO-8601, Z represents UTC (Zero offset)
        time = datetime.now(timezone.utc).strftime(u'%Y-%m-%dT%H:%M:%S.%fZ')
        pairs = [("time", time), ("level", LogLevel.STRINGS[level])]
        pairs.extend(self.context)
        pairs.append(("msg", msg))
        pairs.extend(fields.items())

        log_item = u" ".join(u"{0}={1}".format(key, format_value(value)) for key, value in pairs) + u"\n"

        for appender in self.appenders:
            appender.write(level, log_item)

        if self.logger != self:
            for appender in self.logger.appenders:
                appender.write(level, log_item)

    def add_appender(self, appender_type, level, path):
        appender = _create_logger_appender(appender_type, level, path)
        self.appenders.append(appender)


def format_value(value):
    """
    Formats a value for a logfmt line; values with spaces, quotes, equal signs or control characters are quoted.
    """
    text = u"{0}".format(value) if value is not None else u""
    if text == u"" or any(c in text for c in u' ="\\') or any(ord(c) < 32 for c in text):
        text = text.replace(u'\\', u'\\\\').replace(u'"', u'\\"').replace(u'\n', u'\\n').replace(u'\r', u'\\r').replace(u'\t', u'\\t')
        return u'"{0}"'.format(text)
    return text


class Appender(object):
    def __init__(self, level):
        self.level = level

    def write(self, level, msg):
        pass


class FileAppender(Appender):
    def __init__(self, level, path):
        super(FileAppender, self).__init__(level)
        self.path = path

    def write(self, level, msg):
        if self.level <= level:
            try:
                with open(self.path, "a+") as log_file:
                    log_file.write(msg)
            except IOError:
                pass


class StdoutAppender(Appender):
    def __init__(self, level):
        super(StdoutAppender, self).__init__(level)

    def write(self, level, msg):
        if self.level <= level:
            try:
                sys.stdout.write(msg)
                sys.stdout.flush()
            except IOError:
                pass


# Initialize logger instance
DEFAULT_LOGGER = Logger()


class LogLevel(object):
    VERBOSE = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    STRINGS = [
        "VERBOSE",
        "INFO",
        "WARNING",
        "ERROR"
    ]


class AppenderType(object):
    FILE = 0
    STDOUT = 1


def add_logger_appender(appender_type, level=LogLevel.INFO, path=None):
    DEFAULT_LOGGER.add_appender(appender_type, level, path)


def reset_appenders():
    DEFAULT_LOGGER.appenders *= 0


def with_context(**values):
    return DEFAULT_LOGGER.with_context(**values)


def verbose(msg_format, *args, **fields):
    DEFAULT_LOGGER.verbose(msg_format, *args, **fields)


def warn(msg_format, *args, **fields):
    DEFAULT_LOGGER.warn(msg_format, *args, **fields)


def _create_logger_appender(appender_type, level=LogLevel.INFO, path=None):
    if appender_type == AppenderType.FILE:
        return FileAppender(level, path)
    elif appender_type == AppenderType.STDOUT:
        return StdoutAppender(level)
    else:
        raise ValueError("Unknown appender type")
