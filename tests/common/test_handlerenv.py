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
import os

from azurecustomscript.common.exception import HandlerEnvironmentError
from azurecustomscript.common.handlerenv import get_handler_environment, get_sequence_number, \
    HANDLER_ENVIRONMENT_FILE
from tests.tools import ExtensionTestCase, EXTENSION_NAME


class TestHandlerEnvironment(ExtensionTestCase):
    def test_get_handler_environment_should_parse_the_handler_environment(self):
        self.write_handler_environment()
        self.write_settings(0)

        handler_env = get_handler_environment(self.handler_dir)

        self.assertEqual(EXTENSION_NAME, handler_env.name)
        self.assertEqual(1.0, handler_env.version)
        self.assertEqual(0, handler_env.seq_no)
        self.assertEqual(self.log_folder, handler_env.log_folder)
        self.assertEqual(self.config_folder, handler_env.config_folder)
        self.assertEqual(self.status_folder, handler_env.status_folder)
        self.assertEqual(os.path.join(self.handler_dir, "heartbeat.log"), handler_env.heartbeat_file)
        self.assertEqual(self.data_dir, handler_env.data_dir)

    def test_handler_environment_paths_should_be_derived_from_the_sequence_number(self):
        self.write_handler_environment()
        self.write_settings(7)

        handler_env = get_handler_environment(self.handler_dir, data_dir="/var/lib/custom-script")

        self.assertEqual(os.path.join(self.config_folder, "7.settings"), handler_env.get_settings_file_path())
        self.assertEqual(os.path.join(self.status_folder, "7.status"), handler_env.get_status_file_path())
        self.assertEqual("/var/lib/custom-script/seqnum", handler_env.get_seqnum_file_path())
        self.assertEqual("/var/lib/custom-script/download/7", handler_env.get_download_dir())

    def test_get_handler_environment_should_accept_an_object_and_a_bom(self):
        content = json.dumps({
            "name": EXTENSION_NAME,
            "handlerEnvironment": {"configFolder": self.config_folder, "statusFolder": self.status_folder}
        })
        with open(os.path.join(self.handler_dir, HANDLER_ENVIRONMENT_FILE), "wb") as handler_env_file:
            handler_env_file.write(b'\xef\xbb\xbf' + content.encode('utf-8'))
        self.write_settings(2)

        handler_env = get_handler_environment(self.handler_dir)

        self.assertEqual(2, handler_env.seq_no)
        self.assertIsNone(handler_env.version)
        self.assertIsNone(handler_env.log_folder)

    def test_get_handler_environment_should_fail_when_the_file_is_invalid(self):
        self.write_settings(0)
        invalid = [
            "not json",
            "[]",
            json.dumps([{"name": "a"}, {"name": "b"}]),
            json.dumps([{"name": EXTENSION_NAME}]),
            json.dumps([{"name": EXTENSION_NAME, "handlerEnvironment": {"configFolder": self.config_folder}}]),
            json.dumps(["not an object"])
        ]
        for content in invalid:
            self.write_handler_environment(content)
            with self.assertRaises(HandlerEnvironmentError, msg=content):
                get_handler_environment(self.handler_dir)

    def test_get_handler_environment_should_reject_invalid_folders(self):
        self.write_settings(0)
        for config_folder, status_folder, log_folder in [(self.config_folder, None, None),
                                                         (None, self.status_folder, None),
                                                         ("", self.status_folder, None),
                                                         (self.config_folder, 42, None),
                                                         (self.config_folder, self.status_folder, ["log"])]:
            self.write_handler_environment(json.dumps([{
                "name": EXTENSION_NAME,
                "handlerEnvironment": {
                    "configFolder": config_folder,
                    "statusFolder": status_folder,
                    "logFolder": log_folder
                }
            }]))
            with self.assertRaises(HandlerEnvironmentError):
                get_handler_environment(self.handler_dir)

    def test_get_handler_environment_should_fail_when_the_file_does_not_exist(self):
        with self.assertRaises(HandlerEnvironmentError) as context_manager:
            get_handler_environment(self.handler_dir)
        self.assertIn(HANDLER_ENVIRONMENT_FILE, str(context_manager.exception))

    def test_get_sequence_number_should_prefer_the_environment_variable(self):
        self.write_settings(3)
        os.environ["ConfigSequenceNumber"] = "1"

        self.assertEqual(1, get_sequence_number(self.config_folder))

    def test_get_sequence_number_should_reject_invalid_environment_values(self):
        for value in ["", "abc", "-1"]:
            os.environ["ConfigSequenceNumber"] = value
            with self.assertRaises(HandlerEnvironmentError):
                get_sequence_number(self.config_folder)

    def test_get_sequence_number_should_use_the_largest_settings_file(self):
        for seq_no in [0, 2, 10, 9]:
            self.write_settings(seq_no)
        for name in ["11.settings.bak", "12.status", "abc.settings"]:
            with open(os.path.join(self.config_folder, name), "w") as f:
                f.write("{}")

        self.assertEqual(10, get_sequence_number(self.config_folder))

    def test_get_sequence_number_should_fail_without_settings_files(self):
        with self.assertRaises(HandlerEnvironmentError):
            get_sequence_number(self.config_folder)

        with self.assertRaises(HandlerEnvironmentError):
            get_sequence_number(os.path.join(self.tmp_dir, "no-such-folder"))
