#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""User-defined exceptions of the etcd checks."""

__all__ = [
    "EtcdMonException",
    "MKConnectError",
    "MKCredentialError",
    "MKStatusError",
]


# never used directly in the code. Just some wrapper to make all of our
# exceptions handleable with one call
class EtcdMonException(Exception):
    pass


class MKCredentialError(EtcdMonException):
    """A TLS credential file is missing or not configured.

    The message already is the text shown to the monitoring user, e.g.
    "could not load CA(/etc/etcd/ca.pem): No such file or directory".
    """


class MKConnectError(EtcdMonException):
    """The client session could not be established or the endpoint not reached."""

    def __str__(self) -> str:
        return "could not connect: %s" % super().__str__()


class MKStatusError(EtcdMonException):
    """The endpoint was reached but did not deliver a usable status."""

    def __str__(self) -> str:
        return "failed to get status: %s" % super().__str__()
