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
Defines all exceptions
"""


class ExtensionHandlerError(Exception):
    """
    Base class of extension handler errors.
    """

    def __init__(self, msg, inner=None):
        # message without the class name, as shown in the status file
        self.message = msg if inner is None else u"{0}\nInner error: {1}".format(msg, inner)
        super(ExtensionHandlerError, self).__init__(u"[{0}] {1}".format(type(self).__name__, self.message))


class ExtensionConfigError(ExtensionHandlerError):
    """
    When the configuration file is malformed.
    """

    def __init__(self, msg=None, inner=None):
        super(ExtensionConfigError, self).__init__(msg, inner)


class HandlerEnvironmentError(ExtensionHandlerError):
    """
    When HandlerEnvironment.json or the sequence number cannot be found or parsed.
    """

    def __init__(self, msg=None, inner=None):
        super(HandlerEnvironmentError, self).__init__(msg, inner)


class SettingsError(ExtensionHandlerError):
    """
    When the handler settings are missing or invalid
    """

    def __init__(self, msg=None, inner=None):
        super(SettingsError, self).__init__(msg, inner)


class SequenceNumberError(ExtensionHandlerError):
    """
    When the sequence number checkpoint cannot be read or written
    """

    def __init__(self, msg=None, inner=None):
        super(SequenceNumberError, self).__init__(msg, inner)


class DownloadError(ExtensionHandlerError):
    """
    When failed to download a file listed in the settings
    """

    def __init__(self, msg=None, inner=None):
        super(DownloadError, self).__init__(msg, inner)


class CommandExecutionError(ExtensionHandlerError):
    """
    When the command to execute returns with a non-zero exit code
    """

    def __init__(self, msg=None, inner=None, exit_code=-1):
        super(CommandExecutionError, self).__init__(msg, inner)
        self.exit_code = exit_code


class CommandStartError(ExtensionHandlerError):
    """
    When the command to execute cannot be started (e.g. the shell does not exist or its output files cannot be
    created)
    """

    def __init__(self, msg=None, inner=None):
        super(CommandStartError, self).__init__(msg, inner)


class CryptError(ExtensionHandlerError):
    """
    When failed to decrypt the protected settings
    """

    def __init__(self, msg=None, inner=None):
        super(CryptError, self).__init__(msg, inner)


class HttpError(ExtensionHandlerError):
    """
    Http request failure
    """

    def __init__(self, msg=None, inner=None, http_status=None):
        super(HttpError, self).__init__(msg, inner)
        self.http_status = http_status
