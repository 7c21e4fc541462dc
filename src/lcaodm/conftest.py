# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

""" Global lcaodm fixtures """
import logging
from functools import partial

import numpy as np
import pytest

from lcaodm import (
    Atom,
    BrillouinZone,
    Geometry,
    Lattice,
    ParallelOrbitals,
    find_neighbors,
)

_log = logging.getLogger(__name__)


@pytest.fixture(scope="session")
def lcaodm_tolerance():
    r64 = (1e-10, 1e-10)
    return {
        np.float64: r64,
        np.float64(0).dtype: r64,
        np.complex128: r64,
        np.complex128(0).dtype: r64,
        None: r64,
    }


@pytest.fixture(scope="session")
def lcaodm_allclose(lcaodm_tolerance):
    def factory(dtype):
        atol, rtol = lcaodm_tolerance[dtype]
        return partial(np.allclose, atol=atol, rtol=rtol)

    return {key: factory(key) for key in lcaodm_tolerance.keys()}


@pytest.fixture(scope="session")
def lcaodm_system():
    """A periodic chain with 2 atoms (2 orbitals each) in the unit-cell

    Each atom overlaps with itself and the nearest image of the other atom,
    i.e. the atom pairs and their lattice translations are

    - (0, 0): (0, 0, 0)
    - (0, 1): (0, 0, 0), (-1, 0, 0)
    - (1, 0): (0, 0, 0), (1, 0, 0)
    - (1, 1): (0, 0, 0)
    """

    class System:
        pass

    d = System()

    d.atom = Atom(1, no=2, R=1.0)
    d.lattice = Lattice([3.0, 10.0, 10.0], nsc=[3, 1, 1])
    d.g = Geometry([[0.0, 0.0, 0.0], [1.5, 0.0, 0.0]], atoms=d.atom, lattice=d.lattice)
    d.paraV = ParallelOrbitals.from_geometry(d.g)
    d.neighbors = find_neighbors(d.g)
    d.bz = BrillouinZone.grid(d.lattice, [3, 1, 1])
    return d


def pytest_configure(config):
    # Locally manage pytest.ini input
    for mark in [
        "io",
        "dmk",
        "sile",
        "lattice",
        "atom",
        "atoms",
        "geometry",
        "parallel",
        "neighbor",
        "sparse",
        "spin",
        "bz",
        "brillouinzone",
        "densitymatrix",
        "transform",
        "physics",
        "messages",
        "environ",
        "version",
        "slow",
    ]:
        config.addinivalue_line(
            "markers", f"{mark}: mark test to run only on named environment"
        )
