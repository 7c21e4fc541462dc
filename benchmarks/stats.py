#!/usr/bin/env python
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

# Print the lcaodm routines of a profile created by the cProfile module
#
#  python stats.py <profile> [sort-key] [fraction]
#
# The sort-key defaults to tottime, and the first 20% of the
# routines are printed.

from __future__ import annotations

import pstats
import sys

if len(sys.argv) > 1:
    fname = sys.argv[1]
else:
    raise ValueError("Must supply a profile file-name")
sort = sys.argv[2] if len(sys.argv) > 2 else "tottime"
fraction = float(sys.argv[3]) if len(sys.argv) > 3 else 0.2

stat = pstats.Stats(fname)
stat.sort_stats(sort)
# the BLAS calls are listed together with the transform routines
stat.print_stats("lcaodm|axpy", fraction)
