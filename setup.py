#!/usr/bin/env python
#
# Azure Custom Script Extension setup.py
#
# Copyright 2013 Microsoft Corporation
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
import re

import setuptools # pylint: disable=C0411
from setuptools import find_packages # pylint: disable=C0411

root_dir = os.path.dirname(os.path.abspath(__file__)) # pylint: disable=invalid-name
os.chdir(root_dir)


def get_version():
    # read the version without importing the package, which needs 'distro' to be installed
    with open(os.path.join(root_dir, "azurecustomscript", "common", "version.py")) as version_file:
        match = re.search(r"^EXTENSION_VERSION = '([^']+)'", version_file.read(), re.MULTILINE)
    return match.group(1)


requires = ['distro'] # pylint: disable=invalid-name

test_requires = ['pytest'] # pylint: disable=invalid-name

setuptools.setup(
    name='azure-custom-script-extension',
    version=get_version(),
    description='Azure Custom Script Extension handler for Linux',
    author='Microsoft Corporation',
    platforms='Linux',
    license='Apache License Version 2.0',
    python_requires='>=3.6',
    packages=find_packages(exclude=["tests*"]),
    scripts=["bin/custom-script-handler"],
    install_requires=requires,
    extras_require={
        'test': test_requires
    }
)
