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

import os
import unittest

import azurecustomscript.common.conf as conf
from azurecustomscript.common.exception import ExtensionConfigError
from tests.tools import data_dir


class TestConf(unittest.TestCase):
    # Note:
    # -- These values *MUST* match those from data/test_customscript.conf
    EXPECTED_CONFIGURATION = {
        "Logs.Verbose": True,
        "Lib.Dir": "/var/lib/custom-script-test",
        "Lib.CertificatesDir": "/var/lib/waagent",
        "OS.OpensslPath": "/usr/local/bin/openssl",
        "Extension.Shell": "/bin/bash",
        "HttpProxy.Host": None,
        "HttpProxy.Port": None,
        "Download.MaxRetry": 3,
        "Download.RetryDelay": 2
    }

    def setUp(self):
        self.conf = conf.ConfigurationProvider()
        conf.load_conf_from_file(os.path.join(data_dir, "test_customscript.conf"), self.conf)

    def test_get_should_return_default_when_key_is_not_found(self):
        self.assertEqual("The Default Value", self.conf.get("this-key-does-not-exist", "The Default Value"))
        self.assertEqual("The Default Value", self.conf.get("this-key-does-not-exist", lambda: "The Default Value"))

    def test_get_switch_should_return_default_when_key_is_not_found(self):
        self.assertEqual(True, self.conf.get_switch("this-key-does-not-exist", True))
        self.assertEqual(True, self.conf.get_switch("this-key-does-not-exist", lambda: True))

    def test_get_int_should_return_default_when_key_is_not_found_or_invalid(self):
        self.assertEqual(123456789, self.conf.get_int("this-key-does-not-exist", 123456789))
        self.assertEqual(123456789, self.conf.get_int("this-key-does-not-exist", lambda: 123456789))
        self.conf.load("Download.MaxRetry=many")
        self.assertEqual(6, conf.get_download_max_retry(self.conf))

    def test_get_configuration_should_return_the_values_of_the_file(self):
        self.assertDictEqual(TestConf.EXPECTED_CONFIGURATION, conf.get_configuration(self.conf))

    def test_getters_should_return_the_values_of_the_file(self):
        self.assertTrue(conf.get_logs_verbose(self.conf))
        self.assertEqual("/var/lib/custom-script-test", conf.get_lib_dir(self.conf))
        self.assertEqual("/usr/local/bin/openssl", conf.get_openssl_cmd(self.conf))
        self.assertEqual("/bin/bash", conf.get_extension_shell(self.conf))
        self.assertIsNone(conf.get_httpproxy_host(self.conf))
        self.assertIsNone(conf.get_httpproxy_port(self.conf))
        self.assertEqual(3, conf.get_download_max_retry(self.conf))
        self.assertEqual(2, conf.get_download_retry_delay(self.conf))

    def test_getters_should_return_defaults_when_nothing_is_configured(self):
        empty = conf.ConfigurationProvider()
        self.assertFalse(conf.get_logs_verbose(empty))
        self.assertEqual("/var/lib/azure/custom-script", conf.get_lib_dir(empty))
        self.assertEqual("/var/lib/waagent", conf.get_certificates_dir(empty))
        self.assertEqual("/usr/bin/openssl", conf.get_openssl_cmd(empty))
        self.assertEqual("/bin/sh", conf.get_extension_shell(empty))
        self.assertEqual(6, conf.get_download_max_retry(empty))
        self.assertEqual(1, conf.get_download_retry_delay(empty))

    def test_load_should_ignore_comments(self):
        provider = conf.ConfigurationProvider()
        provider.load("# Extension.Shell=/bin/zsh\nHttpProxy.Host=proxy.example.com # corporate proxy\nHttpProxy.Port=3128")
        self.assertEqual("/bin/sh", conf.get_extension_shell(provider))
        self.assertEqual("proxy.example.com", conf.get_httpproxy_host(provider))
        self.assertEqual(3128, conf.get_httpproxy_port(provider))

    def test_load_should_use_the_defaults_for_an_empty_configuration(self):
        provider = conf.ConfigurationProvider()
        provider.load("")
        provider.load("\n\n")
        self.assertEqual({}, provider.values)
        self.assertEqual("/bin/sh", conf.get_extension_shell(provider))

        conf.load_conf_from_file(os.path.join(data_dir, "empty.conf"), provider)
        self.assertEqual("/var/lib/azure/custom-script", conf.get_lib_dir(provider))

    def test_load_conf_from_file_should_fail_when_the_file_does_not_exist(self):
        with self.assertRaises(ExtensionConfigError):
            conf.load_conf_from_file(os.path.join(data_dir, "no-such-file.conf"), conf.ConfigurationProvider())


if __name__ == '__main__':
    unittest.main()
