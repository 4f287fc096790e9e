# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the Apache License.

import datetime

STATUS_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def create_utc_timestamp(dt):
    """
    Formats the given datetime, which must be timezone-aware and in UTC, as "YYYY-MM-DDTHH:MM:SSZ", the format
    the guest agent expects in the "timestampUTC" field of a status file.
    """
    if dt.tzinfo is None:
        raise ValueError("The datetime must be timezone-aware")
    if dt.utcoffset() != datetime.timedelta(0):
        raise ValueError("The datetime must be in UTC")

    return dt.strftime(STATUS_TIMESTAMP_FORMAT)


def utc_now():
    return datetime.datetime.now(datetime.timezone.utc)
