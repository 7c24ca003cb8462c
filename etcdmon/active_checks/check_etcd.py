#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_etcd - Monitor the database size of etcd, optionally over mutual TLS"""

import sys
from collections.abc import Iterable

from etcdmon.active_checks import etcd_dbsize

# Alarm at 1.5G, the default quota of etcd is 2G
PROFILE = etcd_dbsize.VariantProfile(name="check_etcd", default_size=1_500_000_000, tls=True)


def main(argv: Iterable[str] | None = None) -> int:
    return etcd_dbsize.main(PROFILE, argv)


if __name__ == "__main__":
    sys.exit(main())
