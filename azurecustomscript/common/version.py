# Azure Custom Script Extension
#
# Copyright 2019 Microsoft Corporation
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

import platform
import sys

import distro

EXTENSION_NAME = "Microsoft.Azure.Extensions.CustomScript"
EXTENSION_VERSION = '1.0.0'
EXTENSION_LONG_VERSION = "{0}-{1}".format(EXTENSION_NAME, EXTENSION_VERSION)

PY_VERSION_MAJOR = sys.version_info[0]
PY_VERSION_MINOR = sys.version_info[1]
PY_VERSION_MICRO = sys.version_info[2]


def get_distro():
    """
    Returns [name, version] of the running Linux distribution
    """
    if platform.system() != 'Linux':
        return [platform.system().lower(), platform.release()]
    return [distro.id(), distro.version()]


__distro__ = get_distro()

DISTRO_NAME = __distro__[0]
DISTRO_VERSION = __distro__[1]


def get_version_string():
    return EXTENSION_VERSION


def get_detailed_version_string():
    """
    Version of the handler, the distribution it is running on and the python interpreter
    """
    return "{0} running on {1} {2}, Python: {3}.{4}.{5}".format(EXTENSION_LONG_VERSION,
                                                               DISTRO_NAME,
                                                               DISTRO_VERSION,
                                                               PY_VERSION_MAJOR,
                                                               PY_VERSION_MINOR,
                                                               PY_VERSION_MICRO)
