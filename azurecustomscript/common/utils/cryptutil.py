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

import base64
import binascii
import errno
import os.path

from azurecustomscript.common.exception import CryptError

import azurecustomscript.common.utils.shellutil as shellutil


class CryptUtil(object):
    def __init__(self, openssl_cmd):
        self.openssl_cmd = openssl_cmd

    def decrypt_protected_settings(self, protected_settings, certificates_dir, thumbprint):
        """
        Decrypts the base64-encoded PKCS#7 (DER) blob the guest agent passes as protectedSettings, using the
        certificate and private key named after 'thumbprint' in 'certificates_dir'. Returns the clear text.
        """
        crt_file = os.path.join(certificates_dir, "{0}.crt".format(thumbprint))
        prv_file = os.path.join(certificates_dir, "{0}.prv".format(thumbprint))
        for path in (crt_file, prv_file):
            if not os.path.exists(path):
                raise CryptError("Cannot decrypt protected settings", IOError(errno.ENOENT, "File not found", path))

        try:
            encrypted = base64.b64decode(protected_settings)
        except (binascii.Error, TypeError) as e:
            raise CryptError("Protected settings are not valid base64", e)

        cmd = [self.openssl_cmd, "smime", "-inform", "DER", "-decrypt", "-recip", crt_file, "-inkey", prv_file]
        try:
            output = shellutil.run_command(cmd, input=encrypted, encode_output=True)
        except shellutil.CommandError as cmd_err:
            raise CryptError("Failed to decrypt protected settings with thumbprint {0}".format(thumbprint),
                             cmd_err.stderr)
        except (IOError, OSError) as e:
            raise CryptError("Failed to run {0}".format(self.openssl_cmd), e)
        return output
