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
The commands the guest agent can invoke the handler with (see HandlerManifest.json).
"""
from collections import namedtuple

from azurecustomscript.common.version import get_detailed_version_string
from azurecustomscript.handlers import DisableHandler, EnableHandler, InstallHandler, UninstallHandler, \
    UpdateHandler


class CommandName(object):
    Install = "install"
    Enable = "enable"
    Disable = "disable"
    Update = "update"
    Uninstall = "uninstall"


# 'label' is the operation reported in the status file
Command = namedtuple("Command", ["name", "label", "handler"])

COMMANDS = {
    CommandName.Install: Command(CommandName.Install, "Install", InstallHandler()),
    CommandName.Enable: Command(CommandName.Enable, "Enable", EnableHandler()),
    CommandName.Disable: Command(CommandName.Disable, "Disable", DisableHandler()),
    CommandName.Update: Command(CommandName.Update, "Update", UpdateHandler()),
    CommandName.Uninstall: Command(CommandName.Uninstall, "Uninstall", UninstallHandler()),
}


class UsageError(Exception):
    """
    The command line does not name exactly one known command
    """


def parse_command(args):
    """
    Returns the Command named by 'args' (the full argument vector, including the program name); raises UsageError
    if it does not consist of exactly one known command.
    """
    if len(args) != 2:
        raise UsageError("Incorrect usage.")
    name = args[1]
    command = COMMANDS.get(name)
    if command is None:
        raise UsageError('Incorrect command: "{0}"'.format(name))
    return command


def usage(program):
    return "Usage: {0} {1}\n{2}".format(program, "|".join(sorted(COMMANDS)), get_detailed_version_string())
