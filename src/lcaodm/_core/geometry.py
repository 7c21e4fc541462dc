# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

from typing import Optional

import numpy as np
import numpy.typing as npt
from numpy import dot, ndarray

import lcaodm._array as _a
from lcaodm._internal import set_module

from .atom import Atom, Atoms
from .lattice import Lattice

__all__ = ["Geometry"]


@set_module("lcaodm")
class Geometry:
    """Holds atomic information, coordinates, species, lattice vectors

    The `Geometry` class holds information regarding atomic coordinates,
    the atomic species, the corresponding lattice-vectors.

    It enables the interaction and conversion of atomic orbitals and atomic indices.

    Parameters
    ----------
    xyz : array_like
        atomic coordinates
        ``xyz[i, :]`` is the atomic coordinate of the i'th atom.
    atoms : array_like or Atoms
        atomic species retrieved from the `PeriodicTable`
    lattice : Lattice
        the unit-cell describing the atoms in a periodic
        super-cell

    Examples
    --------

    An atomic cubic lattice of Hydrogen atoms

    >>> xyz = [[0, 0, 0],
    ...        [1, 1, 1]]
    >>> lattice = Lattice([2, 2, 2])
    >>> g = Geometry(xyz, Atom(1, R=1.), lattice)
    """

    def __init__(
        self,
        xyz: npt.ArrayLike,
        atoms=None,
        lattice: Optional[Lattice] = None,
    ):
        # Create the geometry coordinate, be aware that we do not copy!
        self.xyz = _a.asarrayd(xyz).reshape(-1, 3)

        # Default value
        if atoms is None:
            atoms = Atom(1)

        # Create the local Atoms object
        self._atoms = Atoms(atoms, na=self.na)

        if lattice is None:
            # estimate a cell with plenty of vacuum
            lattice = Lattice(np.amax(self.xyz, axis=0) - np.amin(self.xyz, axis=0) + 10)
        elif not isinstance(lattice, Lattice):
            lattice = Lattice(lattice)
        self.lattice = lattice

    @property
    def atoms(self) -> Atoms:
        """Atoms for the geometry (`Atoms` object)"""
        return self._atoms

    @property
    def na(self) -> int:
        """Number of atoms in geometry"""
        return self.xyz.shape[0]

    def __len__(self) -> int:
        """Number of atoms in geometry in unit cell"""
        return self.na

    @property
    def no(self) -> int:
        """Number of orbitals in unit cell"""
        return self.atoms.no

    @property
    def firsto(self) -> ndarray:
        """The first orbital on the corresponding atom"""
        return self.atoms.firsto

    @property
    def lasto(self) -> ndarray:
        """The last orbital on the corresponding atom"""
        return self.atoms.lasto

    @property
    def orbitals(self) -> ndarray:
        """Number of orbitals per atom"""
        return self.atoms.orbitals

    @property
    def maxR(self) -> ndarray:
        """Orbital cutoff radius per atom"""
        return self.atoms.maxR

    @property
    def cell(self) -> ndarray:
        """Returns the inherent `Lattice.cell`"""
        return self.lattice.cell

    @property
    def rcell(self) -> ndarray:
        """Returns the inherent `Lattice.rcell`"""
        return self.lattice.rcell

    @property
    def icell(self) -> ndarray:
        """Returns the inherent `Lattice.icell`"""
        return self.lattice.icell

    @property
    def fxyz(self) -> ndarray:
        """Returns geometry coordinates in fractional coordinates"""
        return dot(self.xyz, self.icell.T)

    def axyz(self, atoms=None, isc=None) -> ndarray:
        """Return the atomic coordinates in the supercell of a given atom.

        Parameters
        ----------
        atoms :
          atom(s) from which we should return the coordinates
        isc : array_like, optional
            Returns the atomic coordinates shifted according to the integer
            parts of the cell. Defaults to the unit-cell

        Examples
        --------
        >>> geom = Geometry([[0, 0, 0], [0.5, 0, 0]], lattice=1.)
        >>> print(geom.axyz(isc=[1,0,0]))
        [[1.   0.   0. ]
         [1.5  0.   0. ]]
        """
        if atoms is None:
            xyz = self.xyz
        else:
            xyz = self.xyz[atoms]
        if isc is None:
            return xyz
        return xyz + self.lattice.offset(isc)

    def a2o(self, atoms, all: bool = False) -> ndarray:
        """
        Returns an orbital index of the first orbital of said atom.

        Parameters
        ----------
        atoms :
             Atomic indices
        all :
             ``False``, return only the first orbital corresponding to the atom,
             ``True``, returns list of the full atom(s), will always return a 1D array.
        """
        if not all:
            return self.firsto[atoms]
        ob = np.atleast_1d(self.firsto[atoms])
        oe = np.atleast_1d(self.lasto[atoms]) + 1
        return _a.array_arange(ob, oe)

    def o2a(self, orbitals) -> ndarray:
        """Atomic index corresponding to the orbital indicies.

        Parameters
        ----------
        orbitals :
             List of orbital indices to return the atoms for
        """
        orbitals = np.asarray(orbitals)
        a = np.searchsorted(self.lasto, orbitals)
        if orbitals.ndim == 0:
            return int(a)
        return a

    def iat2iait(self, iat: int) -> tuple[int, int]:
        """Species index and index within the species of atom `iat`"""
        return self.atoms.iat2iait(iat)

    def itia2iat(self, it: int, ia: int) -> int:
        """Atom index of the `ia`'th atom of species `it`"""
        return self.atoms.itia2iat(it, ia)

    def __str__(self) -> str:
        """str of the object"""
        s = self.__class__.__name__ + f"{{na: {self.na}, no: {self.no},\n "
        s += str(self.atoms).replace("\n", "\n ")
        return s + ",\n " + str(self.lattice).replace("\n", "\n ") + "\n}"

    def __repr__(self) -> str:
        return f"<{self.__module__}.{self.__class__.__name__} na={self.na}, no={self.no}, nsc={self.lattice.nsc}>"
