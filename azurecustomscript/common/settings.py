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
Handler settings, from <configFolder>/<seqNo>.settings:

{"runtimeSettings": [{"handlerSettings": {
    "protectedSettingsCertThumbprint": "1BE9A13AA1321C7C515EF109746998BAB6D86FD1",
    "protectedSettings": "MIIByAYJKoZIhvcNAQcDoIIBuTCCAbUCAQAxggFxMIIBbQIBADBV...",
    "publicSettings": {"fileUris": ["https://example.blob.core.windows.net/scripts/install.sh"]}
}}]}

The decrypted protectedSettings are a JSON object with the same keys as publicSettings; secrets such as the
command to execute go there.
"""
import json
import re

import azurecustomscript.common.conf as conf
from azurecustomscript.common.exception import SettingsError
from azurecustomscript.common.utils import fileutil
from azurecustomscript.common.utils.cryptutil import CryptUtil

REDACTED_TEXT = "*** REDACTED ***"

_PROTECTED_SETTINGS_REGEX = re.compile(r'"protectedSettings":\s*"[^"]*"')
_THUMBPRINT_REGEX = re.compile(r'"protectedSettingsCertThumbprint":\s*"[^"]*"')


def redact_protected_settings(content):
    redacted = _PROTECTED_SETTINGS_REGEX.sub('"protectedSettings": "{0}"'.format(REDACTED_TEXT), content)
    return _THUMBPRINT_REGEX.sub('"protectedSettingsCertThumbprint": "{0}"'.format(REDACTED_TEXT), redacted)


class HandlerSettings(object):
    def __init__(self, public_settings=None, protected_settings=None):
        self.public_settings = public_settings if public_settings is not None else {}
        self.protected_settings = protected_settings if protected_settings is not None else {}

    def _get(self, key):
        if key in self.protected_settings:
            return self.protected_settings[key]
        return self.public_settings.get(key)

    @property
    def file_uris(self):
        return self._get("fileUris") or []

    @property
    def command_to_execute(self):
        return self._get("commandToExecute")

    def validate(self):
        in_public = "commandToExecute" in self.public_settings
        in_protected = "commandToExecute" in self.protected_settings
        if in_public and in_protected:
            raise SettingsError("commandToExecute was specified both in public and protected settings; "
                                "it must be specified only once")
        if not in_public and not in_protected:
            raise SettingsError("commandToExecute was not specified in either public or protected settings")
        command = self.command_to_execute
        if not isinstance(command, str) or command.strip() == "":
            raise SettingsError("commandToExecute is empty or invalid")

        file_uris = self._get("fileUris")
        if file_uris is not None:
            if not isinstance(file_uris, list) or not all(isinstance(uri, str) for uri in file_uris):
                raise SettingsError("fileUris must be a list of strings")


def parse_handler_settings(content, crypt_util=None, certificates_dir=None):
    """
    Parses the contents of a .settings file, decrypting the protected settings if present.
    """
    try:
        config = json.loads(content)
        handler_settings = config['runtimeSettings'][0]['handlerSettings']
    except ValueError as e:
        raise SettingsError("Invalid JSON in handler settings: {0}".format(redact_protected_settings(content)), e)
    except (KeyError, IndexError, TypeError) as e:
        raise SettingsError("Missing handlerSettings in: {0}".format(redact_protected_settings(content)), e)

    if not isinstance(handler_settings, dict):
        raise SettingsError("handlerSettings must be a JSON object")

    public_settings = handler_settings.get('publicSettings') or {}
    if not isinstance(public_settings, dict):
        raise SettingsError("publicSettings must be a JSON object")

    protected_settings = {}
    encrypted = handler_settings.get('protectedSettings')
    thumbprint = handler_settings.get('protectedSettingsCertThumbprint')
    if encrypted:
        if not thumbprint:
            raise SettingsError("protectedSettings were specified without protectedSettingsCertThumbprint")
        if crypt_util is None:
            crypt_util = CryptUtil(conf.get_openssl_cmd())
        if certificates_dir is None:
            certificates_dir = conf.get_certificates_dir()
        clear_text = crypt_util.decrypt_protected_settings(encrypted, certificates_dir, thumbprint)
        try:
            protected_settings = json.loads(clear_text)
        except ValueError as e:
            # do not include the decrypted text in the error
            raise SettingsError("The decrypted protectedSettings are not valid JSON", type(e).__name__)
        if not isinstance(protected_settings, dict):
            raise SettingsError("protectedSettings must be a JSON object")

    return HandlerSettings(public_settings=public_settings, protected_settings=protected_settings)


def load_handler_settings(settings_file, crypt_util=None, certificates_dir=None):
    try:
        content = fileutil.read_file(settings_file, remove_bom=True)
    except (IOError, OSError, UnicodeDecodeError) as e:
        raise SettingsError("Unable to read {0}".format(settings_file), e)
    return parse_handler_settings(content, crypt_util=crypt_util, certificates_dir=certificates_dir)
