# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
""" Distribution of orbitals on a 2D block-cyclic process grid

Only the book-keeping is done here, i.e. which global rows and columns
of the orbital matrices are owned by the current process and where they
are located in the local buffers. No communication is performed.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import numpy.typing as npt

import lcaodm._array as _a
from lcaodm._internal import set_module

__all__ = ["ParallelOrbitals"]

_log = logging.getLogger(__name__)


def _block_cyclic(n: int, nb: int, nproc: int, iproc: int) -> np.ndarray:
    """Local index of each of the `n` global indices, -1 when not owned by `iproc`"""
    g = _a.arangei(n)
    owned = (g // nb) % nproc == iproc
    local = _a.fulli(n, -1)
    local[owned] = _a.arangei(np.count_nonzero(owned))
    return local


def _atom_ranges(firsto: np.ndarray, g2l: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """First local index and number of local indices for each atom"""
    na = len(firsto) - 1
    begin = _a.fulli(na, -1)
    size = _a.zerosi(na)
    for ia in range(na):
        local = g2l[firsto[ia] : firsto[ia + 1]]
        local = local[local >= 0]
        if len(local) > 0:
            # owned indices of an atom are consecutive in the local numbering
            begin[ia] = local[0]
            size[ia] = len(local)
    return begin, size


@set_module("lcaodm")
class ParallelOrbitals:
    r"""Layout of the orbital matrices on a 2D block-cyclic process grid

    The global matrix of dimension :math:`N\times N` (:math:`N` being the total
    number of orbitals) is split in blocks of `nb` rows/columns that are
    distributed cyclically over the process rows/columns.
    The current process owns ``nrow`` rows and ``ncol`` columns.

    The orbitals of an atom are consecutive in the global matrix, hence the
    owned orbitals of an atom are also consecutive in the local buffers and
    may be described by a begin index and a size.

    Parameters
    ----------
    orbitals :
       number of orbitals for each atom
    nb :
       block size of the block-cyclic distribution, defaults to a single block
       i.e. no distribution
    grid :
       number of process rows and columns
    coord :
       row and column coordinate of the current process in the grid
    """

    def __init__(
        self,
        orbitals: npt.ArrayLike,
        nb: Optional[int] = None,
        grid: tuple[int, int] = (1, 1),
        coord: tuple[int, int] = (0, 0),
    ):
        orbitals = _a.asarrayi(orbitals).ravel()
        if np.any(orbitals < 0):
            raise ValueError(
                f"{self.__class__.__name__} requires a non-negative number of orbitals per atom"
            )
        self._firsto = np.insert(_a.cumsumi(orbitals), 0, 0)
        nlocal = int(self._firsto[-1])

        if nb is None:
            nb = max(nlocal, 1)
        if nb <= 0:
            raise ValueError(f"{self.__class__.__name__} block size must be positive")
        for n, c in zip(grid, coord):
            if not 0 <= c < n:
                raise ValueError(
                    f"{self.__class__.__name__} process coordinate {coord} is not in grid {grid}"
                )

        self.nb = nb
        self.grid = tuple(grid)
        self.coord = tuple(coord)

        self.global2local_row = _block_cyclic(nlocal, nb, grid[0], coord[0])
        self.global2local_col = _block_cyclic(nlocal, nb, grid[1], coord[1])
        self.local2global_row = (self.global2local_row >= 0).nonzero()[0].astype(np.int32)
        self.local2global_col = (self.global2local_col >= 0).nonzero()[0].astype(np.int32)
        self.nrow = len(self.local2global_row)
        self.ncol = len(self.local2global_col)

        self.atom_begin_row, self._row_size = _atom_ranges(
            self._firsto, self.global2local_row
        )
        self.atom_begin_col, self._col_size = _atom_ranges(
            self._firsto, self.global2local_col
        )
        _log.debug(
            f"{self.__class__.__name__} grid={self.grid} coord={self.coord} "
            f"nb={self.nb} nrow={self.nrow} ncol={self.ncol}"
        )

    @classmethod
    def from_geometry(cls, geometry, npol: int = 1, **kwargs) -> ParallelOrbitals:
        """Create the layout from the orbitals of a geometry

        Parameters
        ----------
        geometry : Geometry
           the geometry containing the atoms and their orbitals
        npol :
           number of spinor components per orbital, 2 for non-collinear
           calculations where the basis dimension is doubled
        **kwargs :
           passed directly to the constructor
        """
        return cls(geometry.orbitals * npol, **kwargs)

    @property
    def na(self) -> int:
        """Number of atoms"""
        return len(self._firsto) - 1

    @property
    def nlocal(self) -> int:
        """Global dimension of the orbital matrices"""
        return int(self._firsto[-1])

    @property
    def nloc(self) -> int:
        """Number of locally stored matrix elements"""
        return self.nrow * self.ncol

    def get_row_size(self, iat: Optional[int] = None) -> int:
        """Number of locally owned rows of atom `iat`, or all local rows if None"""
        if iat is None:
            return self.nrow
        return int(self._row_size[iat])

    def get_col_size(self, iat: Optional[int] = None) -> int:
        """Number of locally owned columns of atom `iat`, or all local columns if None"""
        if iat is None:
            return self.ncol
        return int(self._col_size[iat])

    def get_indexes_row(self, iat: int) -> np.ndarray:
        """Orbital indices (relative to the first orbital of `iat`) of the owned rows"""
        first = self._firsto[iat]
        local = self.global2local_row[first : self._firsto[iat + 1]]
        return (local >= 0).nonzero()[0]

    def get_indexes_col(self, iat: int) -> np.ndarray:
        """Orbital indices (relative to the first orbital of `iat`) of the owned columns"""
        first = self._firsto[iat]
        local = self.global2local_col[first : self._firsto[iat + 1]]
        return (local >= 0).nonzero()[0]

    def in_this_processor(self, row: int, col: int) -> bool:
        """Whether the global element (`row`, `col`) is stored on this process"""
        return self.global2local_row[row] >= 0 and self.global2local_col[col] >= 0

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}{{na: {self.na}, nlocal: {self.nlocal}, "
            f"nb: {self.nb}, grid: {self.grid}, coord: {self.coord}, "
            f"nrow: {self.nrow}, ncol: {self.ncol}}}"
        )
