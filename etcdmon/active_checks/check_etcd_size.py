#!/usr/bin/env python3
# Copyright (C) 2026 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_etcd_size - Monitor the database size of etcd over plain HTTP"""

import sys
from collections.abc import Iterable

from etcdmon.active_checks import etcd_dbsize

PROFILE = etcd_dbsize.VariantProfile(name="check_etcd_size", default_size=1_000_000_000)


def main(argv: Iterable[str] | None = None) -> int:
    return etcd_dbsize.main(PROFILE, argv)


if __name__ == "__main__":
    sys.exit(main())
