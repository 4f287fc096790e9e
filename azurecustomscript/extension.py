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
Entry point of the handler. The guest agent starts a new process for each command (see HandlerManifest.json):

    custom-script-handler install|enable|disable|update|uninstall

Each invocation reports "transitioning" to the status file of its sequence number, runs the command and then
reports either "success" or "error". Usage errors and errors reading the handler environment are fatal and are
not reported in the status file, since there is no sequence number to report them against.
"""
import os
import sys

import azurecustomscript.common.conf as conf
import azurecustomscript.common.logger as logger
from azurecustomscript.cmds import UsageError, parse_command, usage
from azurecustomscript.common.exception import ExtensionConfigError, ExtensionHandlerError, HandlerEnvironmentError
from azurecustomscript.common.handlerenv import get_handler_environment
from azurecustomscript.common.status import ExtensionStatusValue, StatusRecord, StatusReporter
from azurecustomscript.common.version import get_version_string

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

LOG_FILE_NAME = "handler.log"


def _init_logger(log_folder=None):
    logger.reset_appenders()
    level = logger.LogLevel.VERBOSE if conf.get_logs_verbose() else logger.LogLevel.INFO
    logger.add_logger_appender(logger.AppenderType.STDOUT, level)
    if log_folder is not None and os.path.isdir(log_folder):
        logger.add_logger_appender(logger.AppenderType.FILE, level, os.path.join(log_folder, LOG_FILE_NAME))


def run(args, handler_dir=None, conf_file_path=conf.DEFAULT_CONF_FILE_PATH):
    """
    Runs the command given in 'args' (the full argument vector) and returns the exit code of the process.
    """
    _init_logger()
    ctx = logger.with_context(version=get_version_string())

    if conf_file_path is not None and os.path.isfile(conf_file_path):
        try:
            conf.load_conf_from_file(conf_file_path)
        except ExtensionConfigError as e:
            ctx.error("failed to load configuration", error=e)
            return EXIT_FAILURE
        _init_logger()

    program = args[0] if len(args) > 0 else "custom-script-handler"
    try:
        command = parse_command(args)
    except UsageError as e:
        print(usage(program))
        print(e)
        return EXIT_FAILURE
    ctx = ctx.with_context(operation=command.name)

    try:
        handler_env = get_handler_environment(handler_dir=handler_dir)
    except HandlerEnvironmentError as e:
        ctx.error("failed to parse handler environment", error=e)
        return EXIT_FAILURE
    _init_logger(handler_env.log_folder)
    ctx = ctx.with_context(seq=handler_env.seq_no)
    ctx.verbose("configuration", **conf.get_configuration())

    reporter = StatusReporter(handler_env.get_status_file_path(), handler_env.name)

    ctx.info("start")
    reporter.report(ctx, StatusRecord(ExtensionStatusValue.transitioning, command.label))
    try:
        command.handler.execute(ctx, handler_env)
    except Exception as e:
        ctx.error("failed to handle", error=e)
        message = e.message if isinstance(e, ExtensionHandlerError) else str(e)
        reporter.report(ctx, StatusRecord(ExtensionStatusValue.error, command.label, message))
        return EXIT_FAILURE

    reporter.report(ctx, StatusRecord(ExtensionStatusValue.success, command.label))
    ctx.info("end")
    return EXIT_SUCCESS


def main(args=None):
    if args is None:
        args = sys.argv
    sys.exit(run(args))


if __name__ == '__main__':
    main()
