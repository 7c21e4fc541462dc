#!/usr/bin/env python
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

# This benchmark creates a chain of atoms and transforms a random
# k-space density matrix to real space.

# This benchmark may be called using:
#
#  python -m cProfile -o $0.profile $0
#
# and it may be post-processed using
#
#  python stats.py $0.profile
#

from __future__ import annotations

import sys

import numpy as np

import lcaodm

if len(sys.argv) > 1:
    N = int(sys.argv[1])
else:
    N = 50
print(f"atoms = {N}")
if len(sys.argv) > 2:
    nk = int(sys.argv[2])
else:
    nk = 10
print(f"nk = {nk}")

reference = "reference" in sys.argv

# Always fix the random seed to make each profiling concurrent
rng = np.random.default_rng(1234567890)

atom = lcaodm.Atom(6, no=4, R=1.6)
lattice = lcaodm.Lattice([1.42 * N, 10, 10], nsc=[3, 1, 1])
xyz = np.zeros([N, 3])
xyz[:, 0] = np.arange(N) * 1.42
geometry = lcaodm.Geometry(xyz, atom, lattice)

paraV = lcaodm.ParallelOrbitals.from_geometry(geometry)
bz = lcaodm.BrillouinZone.grid(lattice, [nk, 1, 1])
dm = lcaodm.DensityMatrix(bz, paraV, 1)
dm.init_DMR(lcaodm.find_neighbors(geometry), geometry)
print(dm.DMR[0])

for buf in dm.get_DMK_vector():
    buf[:] = rng.random(buf.size) + 1j * rng.random(buf.size)

if reference:
    dm.cal_DMR_test()
else:
    dm.cal_DMR()
