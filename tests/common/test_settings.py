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

import json

from azurecustomscript.common.exception import CryptError, SettingsError
from azurecustomscript.common.settings import HandlerSettings, load_handler_settings, parse_handler_settings, \
    redact_protected_settings, REDACTED_TEXT
from tests.tools import ExtensionTestCase, Mock, load_data


def _settings(handler_settings):
    return json.dumps({"runtimeSettings": [{"handlerSettings": handler_settings}]})


class TestSettings(ExtensionTestCase):
    def test_parse_handler_settings_should_return_the_public_settings(self):
        settings = parse_handler_settings(_settings({
            "publicSettings": {"fileUris": ["https://example.com/a.sh"], "commandToExecute": "sh a.sh"}
        }))

        self.assertEqual(["https://example.com/a.sh"], settings.file_uris)
        self.assertEqual("sh a.sh", settings.command_to_execute)
        self.assertEqual({}, settings.protected_settings)
        settings.validate()

    def test_parse_handler_settings_should_decrypt_the_protected_settings(self):
        crypt_util = Mock()
        crypt_util.decrypt_protected_settings.return_value = '{"commandToExecute": "echo $SECRET"}'

        settings = parse_handler_settings(load_data("settings_with_protected.json"), crypt_util=crypt_util,
                                          certificates_dir="/var/lib/waagent")

        crypt_util.decrypt_protected_settings.assert_called_once()
        args = crypt_util.decrypt_protected_settings.call_args[0]
        self.assertTrue(args[0].startswith("MIIByAYJ"))
        self.assertEqual("/var/lib/waagent", args[1])
        self.assertEqual("1BE9A13AA1321C7C515EF109746998BAB6D86FD1", args[2])
        self.assertEqual("echo $SECRET", settings.command_to_execute)
        self.assertEqual(1, len(settings.file_uris))
        settings.validate()

    def test_parse_handler_settings_should_propagate_decryption_errors(self):
        crypt_util = Mock()
        crypt_util.decrypt_protected_settings.side_effect = CryptError("bad certificate")

        with self.assertRaises(CryptError):
            parse_handler_settings(load_data("settings_with_protected.json"), crypt_util=crypt_util)

    def test_parse_handler_settings_should_not_leak_the_decrypted_text(self):
        crypt_util = Mock()
        crypt_util.decrypt_protected_settings.return_value = 'password=hunter2'

        with self.assertRaises(SettingsError) as context_manager:
            parse_handler_settings(load_data("settings_with_protected.json"), crypt_util=crypt_util)
        self.assertNotIn("hunter2", str(context_manager.exception))

    def test_parse_handler_settings_should_require_a_thumbprint_for_protected_settings(self):
        with self.assertRaises(SettingsError):
            parse_handler_settings(_settings({"protectedSettings": "MIIB"}), crypt_util=Mock())

    def test_parse_handler_settings_should_fail_on_malformed_content(self):
        for content in ["", "{", "{}", '{"runtimeSettings": []}', '{"runtimeSettings": [{}]}',
                        _settings([]), _settings({"publicSettings": "sh a.sh"})]:
            with self.assertRaises(SettingsError, msg=content):
                parse_handler_settings(content)

    def test_error_messages_should_redact_the_protected_settings(self):
        content = load_data("settings_with_protected.json") + "}"

        with self.assertRaises(SettingsError) as context_manager:
            parse_handler_settings(content)
        message = str(context_manager.exception)
        self.assertNotIn("MIIByAYJ", message)
        self.assertNotIn("1BE9A13AA1321C7C515EF109746998BAB6D86FD1", message)
        self.assertIn(REDACTED_TEXT, message)

    def test_redact_protected_settings_should_keep_the_public_settings(self):
        redacted = redact_protected_settings('{"protectedSettings": "secret", "publicSettings": {"a": "b"}}')
        self.assertEqual('{"protectedSettings": "' + REDACTED_TEXT + '", "publicSettings": {"a": "b"}}', redacted)

    def test_validate_should_require_the_command_exactly_once(self):
        for public, protected in [({}, {}),
                                  ({"commandToExecute": "ls"}, {"commandToExecute": "ls"}),
                                  ({"commandToExecute": ""}, {}),
                                  ({"commandToExecute": "   "}, {}),
                                  ({}, {"commandToExecute": 5})]:
            with self.assertRaises(SettingsError):
                HandlerSettings(public, protected).validate()

    def test_validate_should_require_a_list_of_uris(self):
        for file_uris in ["https://example.com/a.sh", [1, 2], {"uri": "https://example.com/a.sh"}]:
            with self.assertRaises(SettingsError):
                HandlerSettings({"fileUris": file_uris, "commandToExecute": "ls"}).validate()

        HandlerSettings({"fileUris": [], "commandToExecute": "ls"}).validate()

    def test_protected_settings_should_take_precedence(self):
        settings = HandlerSettings({"fileUris": ["https://example.com/public.sh"]},
                                   {"fileUris": ["https://example.com/protected.sh"], "commandToExecute": "ls"})
        self.assertEqual(["https://example.com/protected.sh"], settings.file_uris)
        settings.validate()

    def test_load_handler_settings_should_fail_when_the_file_does_not_exist(self):
        with self.assertRaises(SettingsError):
            load_handler_settings(self.get_status_file(42))

    def test_load_handler_settings_should_read_the_settings_file(self):
        path = self.write_settings(1, public_settings={"commandToExecute": "date"})
        self.assertEqual("date", load_handler_settings(path).command_to_execute)
