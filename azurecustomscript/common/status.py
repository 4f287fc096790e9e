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
Status reporting. The guest agent polls <statusFolder>/<seqNo>.status, which holds a one-element array:

[{
    "version": 1.0,
    "timestampUTC": "2026-10-17T10:00:00Z",
    "status": {
        "name": "Microsoft.Azure.Extensions.CustomScript",
        "operation": "Enable",
        "status": "success",
        "code": 0,
        "formattedMessage": {
            "lang": "en",
            "message": ""
        }
    }
}]
"""
import json
import os

from azurecustomscript.common.utils import fileutil
from azurecustomscript.common.utils.timeutil import create_utc_timestamp, utc_now

STATUS_FORMAT_VERSION = 1.0


class ExtensionStatusValue(object):
    """
    Statuses for Extensions
    """
    transitioning = "transitioning"
    error = "error"
    success = "success"
    STRINGS = ['transitioning', 'error', 'success']


class StatusRecord(object):
    def __init__(self, status, operation, message="", timestamp=None):
        if status not in ExtensionStatusValue.STRINGS:
            raise ValueError("Invalid status: {0}".format(status))
        self.status = status
        self.operation = operation
        self.message = message if message is not None else ""
        self.timestamp = timestamp if timestamp is not None else utc_now()

    @property
    def code(self):
        return 1 if self.status == ExtensionStatusValue.error else 0

    def to_json(self, name=None):
        status = {
            "operation": self.operation,
            "status": self.status,
            "code": self.code,
            "formattedMessage": {
                "lang": "en",
                "message": self.message
            }
        }
        if name is not None:
            status["name"] = name
        return json.dumps([{
            "version": STATUS_FORMAT_VERSION,
            "timestampUTC": create_utc_timestamp(self.timestamp),
            "status": status
        }])


class StatusReporter(object):
    """
    Writes the status of the current invocation to the file polled by the guest agent. Writing is best-effort:
    failures are logged and reported through the return value of report(), never raised.
    """
    def __init__(self, status_file, name=None):
        self.status_file = status_file
        self.name = name

    def report(self, ctx, record):
        ctx.info("reporting status", status=record.status, operation=record.operation)
        try:
            fileutil.mkdir(os.path.dirname(self.status_file))
            fileutil.write_file_atomic(self.status_file, record.to_json(self.name))
        except (IOError, OSError) as e:
            ctx.error("failed to save status", path=self.status_file, error=e)
            return False
        return True
