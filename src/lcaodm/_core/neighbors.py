# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
""" Neighbor lists of atoms with overlapping orbitals

The neighbor list is the source of atom pairs (and their lattice translations)
for which the real space density matrix is stored.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from functools import cached_property
from numbers import Real
from typing import Optional

import numpy as np

import lcaodm._array as _a
from lcaodm._internal import set_module

from .geometry import Geometry

__all__ = ["AtomNeighbors", "NeighborList", "find_neighbors"]

_log = logging.getLogger(__name__)


@set_module("lcaodm")
class AtomNeighbors:
    """Neighbors of a single atom, in the order they were found

    Parameters
    ----------
    atom :
        the atom for which these are the neighbors
    J :
        atomic indices of the neighbors (in the unit-cell)
    species :
        species indices of the neighbors (-1 if unknown)
    isc :
        supercell offsets (lattice translations) of the neighbors
    """

    __slots__ = ("atom", "J", "species", "isc")

    def __init__(self, atom: int, J: np.ndarray, species: np.ndarray, isc: np.ndarray):
        self.atom = atom
        self.J = J
        self.species = species
        self.isc = isc

    def __len__(self) -> int:
        return len(self.J)

    def __iter__(self):
        """Loop neighbors, yielding the atomic index and the lattice translation"""
        for j, isc in zip(self.J, self.isc):
            yield int(j), tuple(isc.tolist())


@set_module("lcaodm")
class NeighborList:
    r"""Neighbor list of all atoms in a unit-cell

    The list is stored as rows of :math:`(I, J, R_x, R_y, R_z)` sorted by :math:`I`
    such that atom :math:`J` (translated by :math:`\mathbf R`) is a neighbor of atom :math:`I`.

    Parameters
    ----------
    na :
        number of atoms in the unit-cell
    finder_results :
        array of shape ``(n, 5)`` with the neighbor rows
    species :
        species index of each :math:`J`, defaults to -1 (unknown)
    """

    def __init__(
        self,
        na: int,
        finder_results: np.ndarray,
        species: Optional[np.ndarray] = None,
    ):
        finder_results = _a.asarrayi(finder_results).reshape(-1, 5)
        if species is None:
            species = _a.fulli(len(finder_results), -1)
        species = _a.asarrayi(species).ravel()
        if len(species) != len(finder_results):
            raise ValueError(
                f"{self.__class__.__name__} requires a species index for each neighbor"
            )
        if len(finder_results) > 0:
            I = finder_results[:, 0]
            if I.min() < 0 or I.max() >= na:
                raise ValueError(
                    f"{self.__class__.__name__} contains atoms outside [0, {na})"
                )
            # keep the found order for each atom
            idx = np.argsort(I, kind="stable")
            finder_results = finder_results[idx]
            species = species[idx]

        self.na = na
        self._finder_results = finder_results
        self._species = species

    @classmethod
    def from_records(
        cls, records: Sequence, geometry: Optional[Geometry] = None
    ) -> NeighborList:
        """Create a neighbor list from a per-atom table of neighbor records

        Parameters
        ----------
        records :
            for each atom a list of neighbor records.
            When `geometry` is given a record is ``(Rx, Ry, Rz, species, index_in_species)``,
            otherwise it is ``(Rx, Ry, Rz, atom)``.
        geometry :
            used to resolve species and index within species to atomic indices

        Examples
        --------
        >>> nl = NeighborList.from_records([[(0, 0, 0, 0), (0, 0, 0, 1)], [(0, 0, 0, 1)]])
        >>> nl[0].J
        array([0, 1], dtype=int32)
        """
        rows = []
        species = []
        for ia, atom_records in enumerate(records):
            for record in atom_records:
                R = record[:3]
                if geometry is None:
                    (ja,) = record[3:]
                    it = -1
                else:
                    it, ia2 = record[3:]
                    ja = geometry.itia2iat(it, ia2)
                rows.append((ia, ja, *R))
                species.append(it)

        na = len(records) if geometry is None else geometry.na
        return cls(na, rows, species)

    @property
    def I(self) -> np.ndarray:
        """For each neighbor pair (I, J), the first index."""
        return self._finder_results[:, 0]

    @property
    def J(self) -> np.ndarray:
        """For each neighbor pair (I, J), the second index."""
        return self._finder_results[:, 1]

    @property
    def isc(self) -> np.ndarray:
        r"""For each neighbor pair (I, J), the supercell indices of :math:`J`."""
        return self._finder_results[:, 2:]

    @property
    def species(self) -> np.ndarray:
        """For each neighbor pair (I, J), the species of :math:`J`."""
        return self._species

    @cached_property
    def n_neighbors(self) -> np.ndarray:
        """Number of neighbors that each atom has."""
        return np.bincount(self.I, minlength=self.na)

    @cached_property
    def split_indices(self) -> np.ndarray:
        """Indices to split the interactions of each atom."""
        return np.cumsum(self.n_neighbors)

    def __len__(self) -> int:
        """Number of atoms"""
        return self.na

    def __getitem__(self, atom: int) -> AtomNeighbors:
        if not -self.na <= atom < self.na:
            raise IndexError(f"{self.__class__.__name__} atom index {atom} out of range")
        atom %= self.na
        end = self.split_indices[atom]
        start = end - self.n_neighbors[atom]
        return AtomNeighbors(
            atom,
            self.J[start:end],
            self._species[start:end],
            self.isc[start:end],
        )

    def __iter__(self) -> Iterator[AtomNeighbors]:
        for ia in range(self.na):
            yield self[ia]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}{{na: {self.na}, pairs: {len(self._finder_results)}}}"


@set_module("lcaodm")
def find_neighbors(geometry: Geometry, R=None) -> NeighborList:
    r"""Find all atoms with overlapping orbitals

    Atoms :math:`i` and :math:`j` are neighbors through the lattice translation
    :math:`\mathbf R` if

    .. math::
        |\mathbf x_j + \mathbf R\cdot\mathbf A - \mathbf x_i| < R_i + R_j

    All supercells of the geometry's lattice are searched. Each atom is always
    a neighbor of itself in the unit-cell.

    Parameters
    ----------
    geometry :
        the geometry to search in
    R : float or array_like, optional
        the orbital radius of all atoms, or per atom.
        Defaults to the cutoff radius of the atoms in the geometry.
    """
    na = geometry.na
    if R is None:
        R = geometry.maxR
    elif isinstance(R, Real):
        R = _a.fulld(na, R)
    R = _a.asarrayd(R).ravel()

    lattice = geometry.lattice
    offsets = lattice.sc_off
    # coordinates of all atoms in all supercells, [isc, atom, xyz]
    sxyz = geometry.xyz[None, :, :] + (offsets @ lattice.cell)[:, None, :]

    rows = []
    for ia in range(na):
        dist = np.linalg.norm(sxyz - geometry.xyz[ia], axis=-1)
        close = dist < R[ia] + R
        # an atom always overlaps with itself
        close[0, ia] = True
        isc, ja = close.nonzero()
        rows.append(np.column_stack([np.full(len(ja), ia), ja, offsets[isc]]))

    if rows:
        rows = np.concatenate(rows)
    else:
        rows = _a.zerosi([0, 5])
    species = geometry.atoms.species[rows[:, 1]]
    _log.debug(f"find_neighbors na={na} pairs={len(rows)}")
    return NeighborList(na, rows, species)
