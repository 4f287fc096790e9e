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
Implementation of the handler commands. Each handler exposes execute(ctx, handler_env), where ctx is the context
logger of the invocation and handler_env its HandlerEnvironment; failures are raised as exceptions.
"""
import os
import posixpath
from urllib.parse import unquote, urlparse

import azurecustomscript.common.conf as conf
import azurecustomscript.common.utils.restutil as restutil
import azurecustomscript.common.utils.shellutil as shellutil
from azurecustomscript.common.exception import CommandExecutionError, CommandStartError, DownloadError, HttpError
from azurecustomscript.common.seqnum import SequenceNumberCheckpoint
from azurecustomscript.common.settings import load_handler_settings
from azurecustomscript.common.utils import fileutil

STDOUT_FILE = "stdout"
STDERR_FILE = "stderr"

# amount of stderr included in the status message when the command fails
STDERR_TAIL_LEN = 1024


class CommandHandler(object):
    def execute(self, ctx, handler_env):
        raise NotImplementedError()


class NoOpHandler(CommandHandler):
    def execute(self, ctx, handler_env):
        ctx.info("nothing to do")


class DisableHandler(NoOpHandler):
    pass


class UpdateHandler(NoOpHandler):
    pass


class InstallHandler(CommandHandler):
    def execute(self, ctx, handler_env):
        fileutil.mkdir(handler_env.data_dir, mode=0o755)
        ctx.info("created data dir", path=handler_env.data_dir)


class UninstallHandler(CommandHandler):
    def execute(self, ctx, handler_env):
        ctx.info("removing data dir", path=handler_env.data_dir)
        fileutil.rm_tree(handler_env.data_dir)
        ctx.info("removed data dir")


class EnableHandler(CommandHandler):
    """
    Downloads the files in 'fileUris' and runs 'commandToExecute' at most once per sequence number.

    The sequence number is checkpointed once the command has run, even if it failed, so that the guest agent does
    not run it again; failures before that point (e.g. downloads, or the command failing to start) leave the
    checkpoint alone and can be retried.
    """
    def execute(self, ctx, handler_env):
        checkpoint = SequenceNumberCheckpoint(handler_env.get_seqnum_file_path())
        if checkpoint.should_skip(handler_env.seq_no):
            ctx.info("this sequence number was already processed, skipping", checkpoint=checkpoint.read())
            return

        settings = load_handler_settings(handler_env.get_settings_file_path())
        settings.validate()

        download_dir = handler_env.get_download_dir()
        fileutil.mkdir(download_dir, mode=0o700)
        ctx.info("created download dir", path=download_dir)

        for uri in settings.file_uris:
            download(ctx, uri, download_dir)

        run_error = None
        try:
            run_command(ctx, settings.command_to_execute, download_dir)
        except CommandExecutionError as e:
            run_error = e

        checkpoint.commit(handler_env.seq_no)
        ctx.info("saved sequence number", seq_no=handler_env.seq_no)

        if run_error is not None:
            raise run_error


def get_file_name(uri):
    path = urlparse(uri).path
    return posixpath.basename(unquote(path))


def download(ctx, uri, download_dir):
    """
    Downloads 'uri' into 'download_dir', naming the file after the last segment of the path of the URI
    """
    redacted_uri = restutil.redact_sas_tokens_in_urls(uri)
    file_name = get_file_name(uri)
    if file_name in ("", ".", ".."):
        raise DownloadError("Cannot determine a file name for {0}".format(redacted_uri))

    target = os.path.join(download_dir, file_name)
    ctx.info("downloading file", uri=redacted_uri, target=target)
    try:
        size = restutil.download_file(uri,
                                      target,
                                      max_retry=conf.get_download_max_retry(),
                                      retry_delay=conf.get_download_retry_delay())
    except HttpError as e:
        raise DownloadError("Failed to download {0}".format(redacted_uri), e)
    except (IOError, OSError) as e:
        raise DownloadError("Failed to save {0} to {1}".format(redacted_uri, target), e)
    ctx.info("downloaded file", target=target, size=size)


def run_command(ctx, command, working_dir):
    """
    Runs 'command' through the configured shell in 'working_dir'; its stdout and stderr are saved to files in
    the same directory. Raises CommandExecutionError if the command exits with a non-zero code and
    CommandStartError if it could not be started at all.
    """
    stdout_path = os.path.join(working_dir, STDOUT_FILE)
    stderr_path = os.path.join(working_dir, STDERR_FILE)
    shell = conf.get_extension_shell()

    ctx.info("executing command", dir=working_dir)
    try:
        with open(stdout_path, "wb") as stdout, open(stderr_path, "wb") as stderr:
            shellutil.run_command([shell, "-c", command], stdout=stdout, stderr=stderr, cwd=working_dir)
    except shellutil.CommandError as e:
        ctx.error("command failed", exit_code=e.returncode)
        raise CommandExecutionError("Command failed with exit code {0}\n[stderr]\n{1}".format(
            e.returncode, fileutil.tail(stderr_path, STDERR_TAIL_LEN)), exit_code=e.returncode)
    except (IOError, OSError) as e:
        raise CommandStartError("Failed to start the command", e)
    ctx.info("executed command")
