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
import subprocess


def _format_command(command):
    """
    Formats the command taken by run_command for use in a message.
    """
    if isinstance(command, list):
        return " ".join(command)
    return command


def _encode_command_output(output):
    """
    Encodes the stdout/stderr returned by subprocess.communicate()
    """
    return (output if output is not None else b'').decode('utf-8', errors="backslashreplace")


class CommandError(Exception):
    """
    Exception raised by run_command when the command returns an error
    """
    @staticmethod
    def _get_message(command, return_code, stderr):
        command_name = command[0] if isinstance(command, list) and len(command) > 0 else command
        return "'{0}' failed: {1} ({2})".format(command_name, return_code, stderr.rstrip())

    def __init__(self, command, return_code, stdout, stderr):
        super(CommandError, self).__init__(CommandError._get_message(command, return_code, stderr))
        self.command = command
        self.returncode = return_code
        self.stdout = stdout
        self.stderr = stderr


# W0622: Redefining built-in 'input'  -- disabled: the parameter name mimics subprocess.communicate()
def run_command(command, input=None, stdout=subprocess.PIPE, stderr=subprocess.PIPE, cwd=None, encode_output=True):  # pylint:disable=W0622
    """
        Executes the given command and returns its stdout.

        If the command returns a non-zero exit code it raises a CommandError. Errors starting the command (e.g. the
        executable does not exist) are propagated as raised by subprocess.

        If encode_output is True the stdout is returned as a string, otherwise it is returned as a bytes object.

        This function is a thin wrapper around Popen/communicate in the subprocess module:
           * The 'input' parameter corresponds to the same parameter in communicate
           * The 'stdout', 'stderr' and 'cwd' parameters correspond to the same parameters in Popen, except that
             'stdout' and 'stderr' default to subprocess.PIPE instead of None
           * If the output of the command is redirected using the 'stdout' or 'stderr' parameters, then the
             corresponding values returned by this function or the CommandError exception will be empty.
    """
    popen_stdin = subprocess.PIPE if input is not None else None

    process = subprocess.Popen(command, stdin=popen_stdin, stdout=stdout, stderr=stderr, cwd=cwd, shell=False)
    command_stdout, command_stderr = process.communicate(input=input)

    if encode_output:
        command_stdout = _encode_command_output(command_stdout)
        command_stderr = _encode_command_output(command_stderr)

    if process.returncode != 0:
        raise CommandError(command=_format_command(command), return_code=process.returncode, stdout=command_stdout,
                           stderr=command_stderr)

    return command_stdout
