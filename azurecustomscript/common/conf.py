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
Module conf loads and parses configuration file
"""  # pylint: disable=W0105
import os
import os.path

from azurecustomscript.common.utils.fileutil import read_file
from azurecustomscript.common.exception import ExtensionConfigError

DEFAULT_CONF_FILE_PATH = "/etc/azure/customscript.conf"


class ConfigurationProvider(object):
    """
    Parse and store key:values in /etc/azure/customscript.conf.
    """

    def __init__(self):
        self.values = dict()

    def load(self, content):
        """
        Parses 'content'; an empty configuration leaves every option at its default value.
        """
        if not content:
            return
        for line in content.split('\n'):
            if not line.startswith("#") and "=" in line:
                parts = line.split('=', 1)
                if len(parts) < 2:
                    continue
                key = parts[0].strip()
                value = parts[1].split('#')[0].strip("\" ").strip()
                self.values[key] = value if value != "None" else None

    @staticmethod
    def _get_default(default):
        if hasattr(default, '__call__'):
            return default()
        return default

    def get(self, key, default_value):
        """
        Retrieves a string parameter by key and returns its value. If not found returns the default value,
        or if the default value is a callable returns the result of invoking the callable.
        """
        val = self.values.get(key)
        return val if val is not None else self._get_default(default_value)

    def get_switch(self, key, default_value):
        """
        Retrieves a switch parameter by key and returns its value as a boolean. If not found returns the default value,
        or if the default value is a callable returns the result of invoking the callable.
        """
        val = self.values.get(key)
        if val is not None and val.lower() == 'y':
            return True
        elif val is not None and val.lower() == 'n':
            return False
        return self._get_default(default_value)

    def get_int(self, key, default_value):
        """
        Retrieves an int parameter by key and returns its value. If not found returns the default value,
        or if the default value is a callable returns the result of invoking the callable.
        """
        try:
            return int(self.values.get(key))
        except TypeError:
            return self._get_default(default_value)
        except ValueError:
            return self._get_default(default_value)


__conf__ = ConfigurationProvider()


def load_conf_from_file(conf_file_path, conf=__conf__):
    """
    Load conf file from: conf_file_path
    """
    if os.path.isfile(conf_file_path) == False:
        raise ExtensionConfigError(("Missing configuration in {0}"
                                    "").format(conf_file_path))
    try:
        content = read_file(conf_file_path)
        conf.load(content)
    except IOError as err:
        raise ExtensionConfigError(("Failed to load conf file:{0}, {1}"
                                    "").format(conf_file_path, err))


__SWITCH_OPTIONS__ = {
    "Logs.Verbose": False
}


__STRING_OPTIONS__ = {
    "Lib.Dir": "/var/lib/azure/custom-script",
    "Lib.CertificatesDir": "/var/lib/waagent",
    "OS.OpensslPath": "/usr/bin/openssl",
    "Extension.Shell": "/bin/sh",
    "HttpProxy.Host": None,
    "HttpProxy.Port": None
}


__INTEGER_OPTIONS__ = {
    "Download.MaxRetry": 6,
    "Download.RetryDelay": 1
}


def get_configuration(conf=__conf__):
    options = {}
    for option in __SWITCH_OPTIONS__:
        options[option] = conf.get_switch(option, __SWITCH_OPTIONS__[option])

    for option in __STRING_OPTIONS__:
        options[option] = conf.get(option, __STRING_OPTIONS__[option])

    for option in __INTEGER_OPTIONS__:
        options[option] = conf.get_int(option, __INTEGER_OPTIONS__[option])

    return options


def get_logs_verbose(conf=__conf__):
    return conf.get_switch("Logs.Verbose", False)


def get_lib_dir(conf=__conf__):
    return conf.get("Lib.Dir", "/var/lib/azure/custom-script")


def get_certificates_dir(conf=__conf__):
    return conf.get("Lib.CertificatesDir", "/var/lib/waagent")


def get_openssl_cmd(conf=__conf__):
    return conf.get("OS.OpensslPath", "/usr/bin/openssl")


def get_extension_shell(conf=__conf__):
    return conf.get("Extension.Shell", "/bin/sh")


def get_httpproxy_host(conf=__conf__):
    return conf.get("HttpProxy.Host", None)


def get_httpproxy_port(conf=__conf__):
    return conf.get_int("HttpProxy.Port", None)


def get_download_max_retry(conf=__conf__):
    return conf.get_int("Download.MaxRetry", 6)


def get_download_retry_delay(conf=__conf__):
    return conf.get_int("Download.RetryDelay", 1)
