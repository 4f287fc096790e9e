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
import os

from azurecustomscript.common.exception import SequenceNumberError
from azurecustomscript.common.utils import fileutil

NO_SEQUENCE_NUMBER = -1


class SequenceNumberCheckpoint(object):
    """
    The highest sequence number the handler has already processed, stored as a decimal integer in a single file.

    The checkpoint is only ever moved forward, and it is replaced atomically (see fileutil.write_file_atomic) so that
    a crash while committing leaves the previous value in place.
    """
    def __init__(self, path):
        self.path = path

    def read(self):
        """
        Returns the checkpointed sequence number, or NO_SEQUENCE_NUMBER if nothing has been processed yet.
        """
        if not os.path.exists(self.path):
            return NO_SEQUENCE_NUMBER
        try:
            content = fileutil.read_file(self.path)
        except (IOError, OSError, UnicodeDecodeError) as e:
            raise SequenceNumberError("Failed to read the sequence number from {0}".format(self.path), e)
        try:
            return int(content.strip())
        except ValueError:
            raise SequenceNumberError("Invalid sequence number in {0}: '{1}'".format(self.path, content.strip()))

    def should_skip(self, seq_no):
        """
        True if 'seq_no' was already processed or is older than the last request processed
        """
        return seq_no <= self.read()

    def commit(self, seq_no):
        """
        Records 'seq_no' as processed. The checkpoint is not modified (and False is returned) if it already holds
        'seq_no' or a larger value.
        """
        if seq_no <= self.read():
            return False
        try:
            parent = os.path.dirname(self.path)
            if parent:
                fileutil.mkdir(parent)
            fileutil.write_file_atomic(self.path, "{0}".format(seq_no))
        except (IOError, OSError) as e:
            raise SequenceNumberError("Failed to save sequence number {0} to {1}".format(seq_no, self.path), e)
        return True
