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
Resolves the context of the current invocation from the files the guest agent sets up for the handler.

HandlerEnvironment.json (in the handler directory)
[{
  "name": "Microsoft.Azure.Extensions.CustomScript",
  "version": 1.0,
  "handlerEnvironment": {
    "logFolder": "/var/log/azure/Microsoft.Azure.Extensions.CustomScript",
    "configFolder": "/var/lib/waagent/Microsoft.Azure.Extensions.CustomScript-1.0.0/config",
    "statusFolder": "/var/lib/waagent/Microsoft.Azure.Extensions.CustomScript-1.0.0/status",
    "heartbeatFile": "/var/lib/waagent/Microsoft.Azure.Extensions.CustomScript-1.0.0/heartbeat.log"
  }
}]

The sequence number of the request is given by the ConfigSequenceNumber environment variable or, when the
guest agent does not set it, by the largest N among the <configFolder>/N.settings files.
"""
import json
import os
import re

import azurecustomscript.common.conf as conf
from azurecustomscript.common.exception import HandlerEnvironmentError
from azurecustomscript.common.utils import fileutil

HANDLER_ENVIRONMENT_FILE = "HandlerEnvironment.json"
SEQUENCE_NUMBER_ENV_VARIABLE = "ConfigSequenceNumber"

SEQUENCE_NUMBER_FILE = "seqnum"
DOWNLOAD_DIR = "download"

_SETTINGS_FILE_REGEX = re.compile(r"^(?P<seq_no>\d+)\.settings$")


class HandlerEnvironment(object):
    """
    Context of one invocation of the handler. Only seq_no is ever persisted (see seqnum.py).
    """
    def __init__(self, name, version, seq_no, log_folder, config_folder, status_folder, heartbeat_file, data_dir):
        self.name = name
        self.version = version
        self.seq_no = seq_no
        self.log_folder = log_folder
        self.config_folder = config_folder
        self.status_folder = status_folder
        self.heartbeat_file = heartbeat_file
        self.data_dir = data_dir

    def get_settings_file_path(self):
        return os.path.join(self.config_folder, "{0}.settings".format(self.seq_no))

    def get_status_file_path(self):
        return os.path.join(self.status_folder, "{0}.status".format(self.seq_no))

    def get_seqnum_file_path(self):
        return os.path.join(self.data_dir, SEQUENCE_NUMBER_FILE)

    def get_download_dir(self):
        return os.path.join(self.data_dir, DOWNLOAD_DIR, str(self.seq_no))

    def __repr__(self):
        return "HandlerEnvironment(name={0}, seq_no={1}, config_folder={2}, status_folder={3}, data_dir={4})".format(
            self.name, self.seq_no, self.config_folder, self.status_folder, self.data_dir)


def get_handler_environment(handler_dir=None, data_dir=None):
    """
    Parses HandlerEnvironment.json in 'handler_dir' (by default the current directory, where the guest agent starts
    the handler) and determines the sequence number of the request. Raises HandlerEnvironmentError on any failure.
    """
    if handler_dir is None:
        handler_dir = os.getcwd()
    if data_dir is None:
        data_dir = conf.get_lib_dir()

    handler_env_file = os.path.join(handler_dir, HANDLER_ENVIRONMENT_FILE)
    try:
        content = fileutil.read_file(handler_env_file, remove_bom=True)
    except (IOError, OSError, UnicodeDecodeError) as e:
        raise HandlerEnvironmentError("Unable to read {0}".format(handler_env_file), e)

    try:
        handler_env = json.loads(content)
    except ValueError as e:
        raise HandlerEnvironmentError("Invalid JSON in {0}".format(handler_env_file), e)

    if isinstance(handler_env, list):
        if len(handler_env) != 1:
            raise HandlerEnvironmentError("Expected exactly one element in {0}, found {1}".format(
                handler_env_file, len(handler_env)))
        handler_env = handler_env[0]

    try:
        name = handler_env['name']
        version = handler_env.get('version')
        env = handler_env['handlerEnvironment']
        config_folder = env['configFolder']
        status_folder = env['statusFolder']
        log_folder = env.get('logFolder')
        heartbeat_file = env.get('heartbeatFile')
    except (KeyError, TypeError, AttributeError) as e:
        raise HandlerEnvironmentError("Missing required setting in {0}".format(handler_env_file), e)

    for key, value in (("configFolder", config_folder), ("statusFolder", status_folder)):
        if not isinstance(value, str) or value == "":
            raise HandlerEnvironmentError("Invalid value for {0} in {1}: {2}".format(key, handler_env_file, value))
    if log_folder is not None and not isinstance(log_folder, str):
        raise HandlerEnvironmentError("Invalid value for logFolder in {0}: {1}".format(handler_env_file, log_folder))

    seq_no = get_sequence_number(config_folder)

    return HandlerEnvironment(name=name,
                              version=version,
                              seq_no=seq_no,
                              log_folder=log_folder,
                              config_folder=config_folder,
                              status_folder=status_folder,
                              heartbeat_file=heartbeat_file,
                              data_dir=data_dir)


def get_sequence_number(config_folder):
    """
    Returns the sequence number of the current request: the value of the ConfigSequenceNumber environment variable
    if set, otherwise the largest N among the N.settings files in 'config_folder'.
    """
    seq_no = os.environ.get(SEQUENCE_NUMBER_ENV_VARIABLE)
    if seq_no is not None:
        try:
            seq_no = int(seq_no)
        except ValueError:
            raise HandlerEnvironmentError("Invalid value for {0}: '{1}'".format(SEQUENCE_NUMBER_ENV_VARIABLE, seq_no))
        if seq_no < 0:
            raise HandlerEnvironmentError("Invalid value for {0}: '{1}'".format(SEQUENCE_NUMBER_ENV_VARIABLE, seq_no))
        return seq_no

    try:
        files = os.listdir(config_folder)
    except OSError as e:
        raise HandlerEnvironmentError("Unable to list the config folder {0}".format(config_folder), e)

    seq_no = -1
    for file_name in files:
        match = _SETTINGS_FILE_REGEX.match(file_name)
        if match is not None:
            seq_no = max(seq_no, int(match.group("seq_no")))

    if seq_no < 0:
        raise HandlerEnvironmentError("Unable to locate a .settings file in {0}".format(config_folder))

    return seq_no
