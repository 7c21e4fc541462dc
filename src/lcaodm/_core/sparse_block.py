# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
r""" Sparse matrices stored as dense blocks of atom pairs

A real space orbital matrix, such as the density matrix, is sparse on the
atomic level. For every pair of atoms :math:`(i, j)` and each lattice translation
:math:`\mathbf R` at which the orbitals overlap, a dense block of
dimension (owned orbitals of :math:`i`) x (owned orbitals of :math:`j`) is stored.

All blocks of a `SparseBlockMatrix` are row-major views into one contiguous
data array.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from numbers import Integral
from typing import Optional, Union

import numpy as np
import numpy.typing as npt
from scipy.sparse import coo_matrix, csr_matrix

import lcaodm._array as _a
from lcaodm._internal import set_module

from .parallel import ParallelOrbitals

__all__ = ["BaseMatrix", "AtomPair", "SparseBlockMatrix"]

_log = logging.getLogger(__name__)


def _R_tuple(R) -> tuple[int, int, int]:
    Rx, Ry, Rz = R
    return int(Rx), int(Ry), int(Rz)


@set_module("lcaodm")
class BaseMatrix:
    """A dense row-major block of a sparse block matrix

    The data is not owned by the block, it is a view into the data array
    of the containing `SparseBlockMatrix`, and is only present once
    the container has been allocated.
    """

    __slots__ = ("nrow", "ncol", "data")

    def __init__(self, nrow: int, ncol: int):
        self.nrow = nrow
        self.ncol = ncol
        self.data: Optional[np.ndarray] = None

    @property
    def shape(self) -> tuple[int, int]:
        return self.nrow, self.ncol

    @property
    def size(self) -> int:
        return self.nrow * self.ncol

    def add_element(self, mu: int, nu: int, value) -> None:
        """Add `value` to element (`mu`, `nu`)"""
        self.data[mu, nu] += value

    def get_value(self, mu: int, nu: int):
        """Value of element (`mu`, `nu`)"""
        return self.data[mu, nu]

    def add_array(self, array: npt.ArrayLike) -> None:
        """Elementwise add `array` (of the same shape) into this block"""
        self.data += np.asarray(array).reshape(self.nrow, self.ncol)

    def set_zero(self) -> None:
        self.data[...] = 0

    def __str__(self) -> str:
        return f"{self.__class__.__name__}{{shape: {self.shape}}}"


@set_module("lcaodm")
class AtomPair:
    """All blocks of a pair of atoms, one per lattice translation

    The number of rows and columns of the blocks and where they are
    located in the local orbital buffers is taken from the orbital
    distribution.

    Parameters
    ----------
    iat1 :
        the atom of the rows
    iat2 :
        the atom of the columns
    R :
        lattice translation(s) of `iat2`
    paraV :
        the distribution of the orbitals
    """

    def __init__(
        self,
        iat1: int,
        iat2: int,
        R: npt.ArrayLike = (0, 0, 0),
        paraV: Optional[ParallelOrbitals] = None,
    ):
        if paraV is None:
            raise ValueError(f"{self.__class__.__name__} requires an orbital distribution")
        self.iat1 = int(iat1)
        self.iat2 = int(iat2)
        self.paraV = paraV
        self.row_ap = int(paraV.atom_begin_row[iat1])
        self.col_ap = int(paraV.atom_begin_col[iat2])
        self.row_size = paraV.get_row_size(iat1)
        self.col_size = paraV.get_col_size(iat2)

        self._R: list[tuple[int, int, int]] = []
        self._R_index: dict[tuple[int, int, int], int] = {}
        self._values: list[BaseMatrix] = []

        for r in _a.asarrayi(R).reshape(-1, 3):
            self.add_R(r)

    @property
    def identity(self) -> tuple[int, int]:
        """The atom pair ``(iat1, iat2)``"""
        return self.iat1, self.iat2

    def add_R(self, R) -> int:
        """Add a lattice translation (if not present) and return its index"""
        R = _R_tuple(R)
        ir = self._R_index.get(R)
        if ir is None:
            ir = len(self._R)
            self._R.append(R)
            self._R_index[R] = ir
            self._values.append(BaseMatrix(self.row_size, self.col_size))
        return ir

    def get_R_size(self) -> int:
        """Number of lattice translations of this pair"""
        return len(self._R)

    def get_R_index(self, ir: int) -> np.ndarray:
        """Lattice translation with index `ir`"""
        return _a.arrayi(self._R[ir])

    def find_R(self, R) -> int:
        """Index of lattice translation `R`, -1 if not present"""
        return self._R_index.get(_R_tuple(R), -1)

    def find_matrix(self, R) -> Optional[BaseMatrix]:
        """Block of lattice translation `R`, None if not present"""
        ir = self.find_R(R)
        if ir < 0:
            return None
        return self._values[ir]

    def get_matrix(self, ir: int) -> BaseMatrix:
        """Block of lattice translation with index `ir`"""
        return self._values[ir]

    def get_size(self) -> int:
        """Number of elements in a single block"""
        return self.row_size * self.col_size

    def merge(self, other: AtomPair) -> None:
        """Add the lattice translations of `other` not already in this pair"""
        if self.identity != other.identity:
            raise ValueError(
                f"{self.__class__.__name__}.merge requires the same atoms, "
                f"{self.identity} != {other.identity}"
            )
        for R in other._R:
            self.add_R(R)

    def copy(self) -> AtomPair:
        """Copy of the structure (no data)"""
        return self.__class__(self.iat1, self.iat2, self._R, self.paraV)

    def _bind(self, data: np.ndarray, offset: int) -> int:
        size = self.get_size()
        for value in self._values:
            value.data = data[offset : offset + size].reshape(self.row_size, self.col_size)
            offset += size
        return offset

    def set_zero(self) -> None:
        for value in self._values:
            value.set_zero()

    def __len__(self) -> int:
        return len(self._R)

    def __iter__(self) -> Iterator[tuple[tuple[int, int, int], BaseMatrix]]:
        """Loop lattice translations, yielding the translation and its block"""
        yield from zip(self._R, self._values)

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}{{atoms: {self.identity}, "
            f"shape: ({self.row_size}, {self.col_size}), R: {len(self)}}}"
        )


@set_module("lcaodm")
class SparseBlockMatrix:
    """Sparse matrix of atom pair blocks for all lattice translations

    Pairs are first inserted with `insert_pair`, then the storage for all
    blocks is created with `allocate`.
    Pairs are looked up in constant time.

    Parameters
    ----------
    paraV :
        the distribution of the orbitals
    dtype :
        data type of the stored blocks

    Examples
    --------
    >>> paraV = ParallelOrbitals([2, 2])
    >>> sp = SparseBlockMatrix(paraV)
    >>> sp.insert_pair(AtomPair(0, 1, [[0, 0, 0], [1, 0, 0]], paraV))
    >>> sp.allocate()
    >>> sp.find_matrix(0, 1, (1, 0, 0)).add_element(0, 0, 1.)
    """

    def __init__(self, paraV: ParallelOrbitals, dtype=np.float64):
        self.paraV = paraV
        self.dtype = np.dtype(dtype)
        self._pairs: list[AtomPair] = []
        self._pair_index: dict[tuple[int, int], int] = {}
        self._data: Optional[np.ndarray] = None
        self._gamma = False

    @property
    def data(self) -> Optional[np.ndarray]:
        """Contiguous storage of all blocks, None until allocated"""
        return self._data

    @property
    def nnz(self) -> int:
        """Number of stored elements"""
        return sum(pair.get_size() * pair.get_R_size() for pair in self._pairs)

    @property
    def is_gamma(self) -> bool:
        """Whether the matrix only holds the Gamma-point (``R = 0``) blocks"""
        return self._gamma

    def fix_gamma(self) -> None:
        """Mark the matrix as a Gamma-point only matrix

        Pairs inserted afterwards only hold the ``R = 0`` block.
        Already inserted pairs are not changed.
        """
        self._gamma = True

    def insert_pair(self, pair: AtomPair) -> None:
        """Insert an atom pair, merging its lattice translations if the pair already exists

        Any allocated data is discarded and `allocate` must be called again.
        """
        if self._gamma:
            pair = AtomPair(pair.iat1, pair.iat2, (0, 0, 0), pair.paraV)
        idx = self._pair_index.get(pair.identity)
        if idx is None:
            self._pair_index[pair.identity] = len(self._pairs)
            self._pairs.append(pair)
        else:
            self._pairs[idx].merge(pair)
        self._data = None

    def allocate(self, zero: bool = True) -> None:
        """Create the data array of all blocks and bind the blocks to it

        Parameters
        ----------
        zero :
            whether the data should be zero-initialized
        """
        if zero:
            data = np.zeros(self.nnz, dtype=self.dtype)
        else:
            data = np.empty(self.nnz, dtype=self.dtype)
        offset = 0
        for pair in self._pairs:
            offset = pair._bind(data, offset)
        self._data = data
        _log.debug(
            f"{self.__class__.__name__}.allocate pairs={len(self._pairs)} "
            f"nnz={len(data)} dtype={self.dtype}"
        )

    def _check_allocated(self, method: str) -> None:
        if self._data is None:
            raise ValueError(
                f"{self.__class__.__name__}.{method} requires the matrix to be allocated"
            )

    def set_zero(self) -> None:
        """Set all stored elements to zero"""
        self._check_allocated("set_zero")
        self._data[:] = 0

    def size_atom_pairs(self) -> int:
        """Number of atom pairs"""
        return len(self._pairs)

    def get_atom_pair(self, *args) -> AtomPair:
        """Atom pair by its index, or by its two atoms

        Examples
        --------
        >>> sp.get_atom_pair(0)
        >>> sp.get_atom_pair(0, 1)
        """
        if len(args) == 1:
            return self._pairs[args[0]]
        pair = self.find_pair(*args)
        if pair is None:
            raise KeyError(f"{self.__class__.__name__} has no atom pair {args}")
        return pair

    def find_pair(self, iat1: int, iat2: int) -> Optional[AtomPair]:
        """Atom pair (`iat1`, `iat2`), None if not present"""
        idx = self._pair_index.get((iat1, iat2))
        if idx is None:
            return None
        return self._pairs[idx]

    def find_matrix(self, iat1: int, iat2: int, R) -> Optional[BaseMatrix]:
        """Block of atom pair (`iat1`, `iat2`) at lattice translation `R`, None if not present"""
        pair = self.find_pair(iat1, iat2)
        if pair is None:
            return None
        return pair.find_matrix(R)

    def copy(self, zero: bool = False) -> SparseBlockMatrix:
        """Copy of the matrix with the same pairs and lattice translations

        Parameters
        ----------
        zero :
            if true, the values are not copied and the new matrix is zero
        """
        new = self.__class__(self.paraV, self.dtype)
        for pair in self._pairs:
            new.insert_pair(pair.copy())
        new._gamma = self._gamma
        if self._data is not None:
            new.allocate(zero=True)
            if not zero:
                new._data[:] = self._data
        return new

    def add(self, other: SparseBlockMatrix) -> None:
        """Elementwise add all blocks of `other` into the corresponding blocks of this matrix

        Raises
        ------
        KeyError
            if a block of `other` is not present in this matrix
        """
        self._check_allocated("add")
        for pair in other:
            for R, block in pair:
                target = self.find_matrix(pair.iat1, pair.iat2, R)
                if target is None:
                    raise KeyError(
                        f"{self.__class__.__name__}.add has no block for atoms "
                        f"{pair.identity} at R={R}"
                    )
                target.add_array(block.data)

    def tocsr(self, R: Sequence[int] = (0, 0, 0)) -> csr_matrix:
        """Local orbital matrix at lattice translation `R` as a `scipy.sparse.csr_matrix`

        The matrix has the dimensions of the local orbital buffers.
        """
        self._check_allocated("tocsr")
        rows = []
        cols = []
        values = []
        for pair in self._pairs:
            block = pair.find_matrix(R)
            if block is None:
                continue
            r = _a.arangei(pair.row_ap, pair.row_ap + pair.row_size)
            c = _a.arangei(pair.col_ap, pair.col_ap + pair.col_size)
            rows.append(np.repeat(r, pair.col_size))
            cols.append(np.tile(c, pair.row_size))
            values.append(block.data.ravel())

        shape = (self.paraV.nrow, self.paraV.ncol)
        if len(values) == 0:
            return csr_matrix(shape, dtype=self.dtype)
        return coo_matrix(
            (np.concatenate(values), (np.concatenate(rows), np.concatenate(cols))),
            shape=shape,
        ).tocsr()

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[AtomPair]:
        yield from self._pairs

    def __getitem__(self, key: Union[int, tuple[int, int]]) -> AtomPair:
        if isinstance(key, Integral):
            return self.get_atom_pair(key)
        return self.get_atom_pair(*key)

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}{{pairs: {len(self)}, nnz: {self.nnz}, "
            f"dtype: {self.dtype}, gamma: {self._gamma}}}"
        )
