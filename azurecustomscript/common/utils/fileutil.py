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
File operation util functions
"""

import os
import shutil


def read_file(filepath, asbin=False, remove_bom=False, encoding='utf-8'):
    """
    Read and return contents of 'filepath'.
    """
    with open(filepath, 'rb') as in_file:
        data = in_file.read()

    if asbin:
        return data

    if remove_bom and data.startswith(b'\xef\xbb\xbf'):
        data = data[3:]
    return data.decode(encoding)


def write_file_atomic(filepath, contents, asbin=False, encoding='utf-8'):
    """
    Replace the contents of 'filepath' with 'contents' so that readers observe either the previous or the new
    contents, never a partial write: the data is written and fsync'ed to '<filepath>.tmp', which is then renamed
    over 'filepath'.
    """
    tmp_path = "{0}.tmp".format(filepath)
    data = contents
    if not asbin:
        data = contents.encode(encoding)
    with open(tmp_path, "wb") as out_file:
        out_file.write(data)
        out_file.flush()
        os.fsync(out_file.fileno())
    os.replace(tmp_path, filepath)
    _fsync_dir(os.path.dirname(os.path.abspath(filepath)))


def _fsync_dir(dirpath):
    try:
        fd = os.open(dirpath, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        # not every file system supports fsync on directories
        pass
    finally:
        os.close(fd)


def mkdir(dirpath, mode=None):
    if not os.path.isdir(dirpath):
        os.makedirs(dirpath)
    if mode is not None:
        os.chmod(dirpath, mode)


def rm_tree(dirpath):
    """
    Remove 'dirpath' and everything under it; a missing directory is not an error
    """
    if os.path.isdir(dirpath):
        shutil.rmtree(dirpath)


def tail(filepath, max_len=4096):
    """
    Return up to the last 'max_len' characters of 'filepath', or an empty string if the file does not exist
    """
    if not os.path.isfile(filepath):
        return u""
    with open(filepath, 'rb') as in_file:
        in_file.seek(0, os.SEEK_END)
        size = in_file.tell()
        in_file.seek(max(0, size - max_len))
        data = in_file.read()
    return data.decode('utf-8', errors='backslashreplace')
