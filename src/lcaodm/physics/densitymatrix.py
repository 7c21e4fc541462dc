# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Optional, Union

import numpy as np
import numpy.typing as npt

import lcaodm._array as _a
from lcaodm._core.geometry import Geometry
from lcaodm._core.neighbors import NeighborList
from lcaodm._core.parallel import ParallelOrbitals
from lcaodm._core.sparse_block import AtomPair, SparseBlockMatrix
from lcaodm._environ import _mismatch_policy, get_environ_variable
from lcaodm._internal import set_module
from lcaodm.io import get_sile
from lcaodm.messages import (
    DimensionMismatchError,
    DimensionMismatchWarning,
    InvalidConfigError,
    MissingSnapshotInfo,
    ValidationError,
    info,
    warn,
)

from ._dm_transform import _TRANSFORMS, transform, transform_reference
from .brillouinzone import BrillouinZone
from .spin import Spin

__all__ = ["DensityMatrix"]

_log = logging.getLogger(__name__)


@set_module("lcaodm.physics")
class DensityMatrix:
    r"""Density matrix in k-space and in real space of a localized basis

    The k-space density matrices :math:`\mathbf D(\mathbf k)` are stored as one
    dense buffer per spin and k-point, with the dimensions of the local orbitals
    of the orbital distribution (``nrow * ncol`` elements).
    The buffers are column-major, local element :math:`(r, c)` is found at
    ``c * nrow + r``. Note that the element accessors `get_DMK` and
    `set_DMK` index the buffers as ``i * nrow + j`` and hence transpose.

    The real space density matrix :math:`\mathbf D(\mathbf R)` holds one
    `SparseBlockMatrix` per spin, created by `init_DMR` and calculated by `cal_DMR`:

    .. math::
        \mathbf D_{ij}(\mathbf R) = \sum_{\mathbf k} e^{i 2\pi \mathbf k\cdot\mathbf R}
            \mathbf D_{ij}(\mathbf k)

    Parameters
    ----------
    kv :
        the k-points, for polarized calculations the k-points of the second
        spin follows the first spin (see `BrillouinZone.spin_duplicate`).
        If None, a Gamma-point only density matrix is created, see `gamma`.
    paraV :
        the distribution of the orbitals
    nspin :
        the spin configuration, 1 (unpolarized), 2 (polarized) or 4 (non-collinear)
    dtype :
        data type of the real space density matrix, defaults to `numpy.float64`.
        Only multi k-point density matrices can use a complex data type.
    validate :
        whether indices and pre-conditions are checked, defaults to the
        ``LCAODM_VALIDATE`` environment variable
    on_mismatch :
        what to do when a read snapshot has the wrong dimensions, ``"warn"``
        (leave the data untouched) or ``"raise"``, defaults to the
        ``LCAODM_DIM_MISMATCH`` environment variable

    Raises
    ------
    InvalidConfigError
        for a wrong spin configuration, or an odd number of k-points for a polarized
        calculation
    TypeError
        if `dtype` cannot be calculated from the k-space density matrices

    Examples
    --------
    >>> paraV = ParallelOrbitals.from_geometry(geometry)
    >>> dm = DensityMatrix(BrillouinZone.grid(geometry, 4), paraV, 1)
    >>> dm.init_DMR(find_neighbors(geometry), geometry)
    >>> dm.set_DMK_pointer(0, DMK)
    >>> dm.cal_DMR()
    """

    def __init__(
        self,
        kv: Optional[BrillouinZone],
        paraV: ParallelOrbitals,
        nspin: Union[int, str, Spin],
        dtype=None,
        *,
        validate: Optional[bool] = None,
        on_mismatch: Optional[Literal["warn", "raise"]] = None,
    ):
        self.spin = Spin(nspin)
        self._nspin = self.spin.nspin
        self._kv = kv
        self._paraV = paraV

        if validate is None:
            validate = get_environ_variable("LCAODM_VALIDATE")
        self._validate = bool(validate)
        if on_mismatch is None:
            on_mismatch = get_environ_variable("LCAODM_DIM_MISMATCH")
        self._on_mismatch = _mismatch_policy(on_mismatch)

        if kv is None:
            self._nks = 1
            dtype_k = np.float64
            nbuffers = self._nspin
        else:
            nk = len(kv)
            if self._nspin == 2 and nk % 2 != 0:
                raise InvalidConfigError(
                    f"{self.__class__.__name__} requires an even number of k-points "
                    f"for a polarized calculation, got {nk}"
                )
            self._nks = nk // self._nspin
            dtype_k = np.complex128
            nbuffers = nk

        if dtype is None:
            dtype = np.float64
        self._dtype = np.dtype(dtype)
        if (np.dtype(dtype_k).kind, self._dtype.kind) not in _TRANSFORMS:
            raise TypeError(
                f"{self.__class__.__name__} cannot transform {np.dtype(dtype_k)} "
                f"k-space matrices into a {self._dtype} real space matrix"
            )

        # the k-space matrices are owned here and replaced as a whole
        self._DMK = [np.zeros(paraV.nloc, dtype=dtype_k) for _ in range(nbuffers)]
        self._DMR: list[SparseBlockMatrix] = []
        _log.debug(
            f"{self.__class__.__name__} nspin={self._nspin} nks={self._nks} "
            f"nrow={paraV.nrow} ncol={paraV.ncol} gamma={self.is_gamma}"
        )

    @classmethod
    def gamma(
        cls, paraV: ParallelOrbitals, nspin: Union[int, str, Spin], dtype=None, **kwargs
    ) -> DensityMatrix:
        """Create a Gamma-point only density matrix, see `DensityMatrix` for arguments"""
        return cls(None, paraV, nspin, dtype, **kwargs)

    @property
    def nspin(self) -> int:
        """Number of stored spin components"""
        return self._nspin

    @property
    def nks(self) -> int:
        """Number of k-points per spin"""
        return self._nks

    @property
    def is_gamma(self) -> bool:
        """Whether this is a Gamma-point only density matrix"""
        return self._kv is None

    @property
    def dtype(self) -> np.dtype:
        """Data type of the real space density matrix"""
        return self._dtype

    @property
    def DMR(self) -> list[SparseBlockMatrix]:
        """Real space density matrices, one per spin"""
        return self._DMR

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}{{nspin: {self._nspin}, nks: {self._nks}, "
            f"gamma: {self.is_gamma}, dtype: {self._dtype},\n "
            + str(self._paraV).replace("\n", "\n ")
            + "\n}"
        )

    def _check_spin(self, ispin: int) -> None:
        if not 1 <= ispin <= self._nspin:
            raise ValidationError(
                f"{self.__class__.__name__} spin index {ispin} not in [1, {self._nspin}]"
            )

    def _check_k(self, ik: int, n: int) -> None:
        if not 0 <= ik < n:
            raise ValidationError(
                f"{self.__class__.__name__} k-point index {ik} not in [0, {n})"
            )

    def _check_element(self, i: int, j: int) -> None:
        # element (i, j) is located at i * nrow + j
        if not (0 <= i < self._paraV.ncol and 0 <= j < self._paraV.nrow):
            raise ValidationError(
                f"{self.__class__.__name__} element ({i}, {j}) is not in the local buffer "
                f"of {self._paraV.ncol}x{self._paraV.nrow}"
            )

    def _k(self, ispin: int) -> np.ndarray:
        """k-points of spin `ispin` (1-based)"""
        if self._kv is None:
            return _a.zerosd([1, 3])
        start = self._nks * (ispin - 1)
        return self._kv.k[start : start + self._nks]

    # Real space density matrix

    def init_DMR(
        self,
        neighbors: Union[NeighborList, list],
        geometry: Optional[Geometry] = None,
    ) -> None:
        """Create the real space density matrices from the neighbors of all atoms

        Any existing real space density matrices are discarded.
        All neighbors (including the atom itself) are inserted in the order of
        `neighbors`, except pairs for which this process does not hold any
        rows of the first atom or columns of the second atom.
        The values are zero.

        Parameters
        ----------
        neighbors :
            the neighbor list, or a per-atom list of neighbor records
            (see `NeighborList.from_records`)
        geometry :
            used to resolve neighbor records
        """
        if not isinstance(neighbors, NeighborList):
            neighbors = NeighborList.from_records(neighbors, geometry)
        if geometry is not None and len(neighbors) != geometry.na:
            raise ValueError(
                f"{self.__class__.__name__}.init_DMR got neighbors for {len(neighbors)} atoms "
                f"but the geometry has {geometry.na} atoms"
            )

        paraV = self._paraV
        DMR = SparseBlockMatrix(paraV, self._dtype)
        if self.is_gamma:
            DMR.fix_gamma()
        for atom_neighbors in neighbors:
            ia = atom_neighbors.atom
            if paraV.get_row_size(ia) == 0:
                continue
            for ja, R in atom_neighbors:
                if paraV.get_col_size(ja) == 0:
                    continue
                DMR.insert_pair(AtomPair(ia, ja, R, paraV))
        DMR.allocate(zero=True)

        self._DMR = [DMR]
        for _ in range(1, self._nspin):
            self._DMR.append(DMR.copy(zero=True))
        _log.debug(
            f"{self.__class__.__name__}.init_DMR pairs={DMR.size_atom_pairs()} nnz={DMR.nnz}"
        )

    def init_DMR_from(self, template: SparseBlockMatrix) -> None:
        """Create the real space density matrices with the structure of `template`

        Any existing real space density matrices are discarded, the values are zero.
        """
        self._DMR = []
        for _ in range(self._nspin):
            DMR = SparseBlockMatrix(self._paraV, self._dtype)
            for pair in template:
                DMR.insert_pair(
                    AtomPair(pair.iat1, pair.iat2, [R for R, _ in pair], self._paraV)
                )
            if self.is_gamma:
                DMR.fix_gamma()
            DMR.allocate(zero=True)
            self._DMR.append(DMR)
        _log.debug(
            f"{self.__class__.__name__}.init_DMR_from pairs={template.size_atom_pairs()}"
        )

    def get_DMR_pointer(self, ispin: int) -> SparseBlockMatrix:
        """Real space density matrix of spin `ispin` (1-based), not a copy"""
        if self._validate:
            self._check_spin(ispin)
        return self._DMR[ispin - 1]

    # k-space density matrix

    def get_DMK(self, ispin: int, ik: int, i: int, j: int):
        """Element ``i * nrow + j`` of k-point `ik` of spin `ispin` (1-based)"""
        if self._validate:
            self._check_spin(ispin)
            self._check_k(ik, self._nks)
            self._check_element(i, j)
        return self._DMK[ik + self._nks * (ispin - 1)][i * self._paraV.nrow + j]

    def set_DMK(self, ispin: int, ik: int, i: int, j: int, value) -> None:
        """Set element ``i * nrow + j`` of k-point `ik` of spin `ispin` (1-based)"""
        if self._validate:
            self._check_spin(ispin)
            self._check_k(ik, self._nks)
            self._check_element(i, j)
        self._DMK[ik + self._nks * (ispin - 1)][i * self._paraV.nrow + j] = value

    def get_DMK_pointer(self, ik: int) -> np.ndarray:
        """Buffer `ik` (over all spins and k-points), not a copy"""
        if self._validate:
            self._check_k(ik, len(self._DMK))
        return self._DMK[ik]

    def set_DMK_pointer(self, ik: int, DMK: npt.ArrayLike) -> None:
        """Copy all ``nrow * ncol`` values of `DMK` into buffer `ik` (over all spins and k-points)"""
        if self._validate:
            self._check_k(ik, len(self._DMK))
        self._DMK[ik][:] = np.asarray(DMK).ravel()

    def get_DMK_vector(self) -> list[np.ndarray]:
        """All k-space buffers, the second spin follows the first"""
        return self._DMK

    def get_DMK_nks(self) -> int:
        """Number of stored k-space buffers (all spins)"""
        return len(self._DMK)

    def get_DMK_nrow(self) -> int:
        return self._paraV.nrow

    def get_DMK_ncol(self) -> int:
        return self._paraV.ncol

    def get_paraV_pointer(self) -> ParallelOrbitals:
        return self._paraV

    def get_kv_pointer(self) -> Optional[BrillouinZone]:
        return self._kv

    # Transforms

    def _check_DMR(self, method: str) -> None:
        if len(self._DMR) != self._nspin:
            raise ValueError(
                f"{self.__class__.__name__}.{method} requires the real space density "
                "matrix, call init_DMR first"
            )

    def cal_DMR(self) -> None:
        """Calculate the real space density matrices from the k-space density matrices

        The real space density matrices are zeroed before summing all k-points.

        Raises
        ------
        OwnershipViolation
            if an atom pair is not stored on this process
        ValidationError
            for a Gamma-point only density matrix where an atom pair has
            other lattice translations than ``R = 0`` (only in validation mode)
        """
        self._check_DMR("cal_DMR")
        for ispin in range(1, self._nspin + 1):
            start = self._nks * (ispin - 1)
            transform(
                self._DMR[ispin - 1],
                self._DMK[start : start + self._nks],
                self._k(ispin),
                self._paraV,
                self._validate,
            )

    def cal_DMR_test(self) -> None:
        """Element by element calculation of `cal_DMR`, this is slow"""
        self._check_DMR("cal_DMR_test")
        for ispin in range(1, self._nspin + 1):
            start = self._nks * (ispin - 1)
            transform_reference(
                self._DMR[ispin - 1],
                self._DMK[start : start + self._nks],
                self._k(ispin),
                self._paraV,
            )

    def sum_DMR_spin(self) -> None:
        """Add the second spin to the first spin of the real space density matrix

        Only the first spin holds meaningful values afterwards.
        Does nothing for unpolarized density matrices.
        """
        if self._nspin == 1:
            return
        self._check_DMR("sum_DMR_spin")
        self._DMR[0].add(self._DMR[1])

    transform_to_real = cal_DMR
    transform_to_real_reference = cal_DMR_test
    merge_spin = sum_DMR_spin

    # Snapshots

    @staticmethod
    def _snapshot_file(directory, ispin: int, ik: int) -> Path:
        return Path(directory) / f"SPIN{ispin}_{ik}.dmk"

    def write_DMK(self, directory, ispin: int, ik: int) -> None:
        """Write k-point `ik` of spin `ispin` (1-based) to ``directory/SPIN{ispin}_{ik}.dmk``

        Only the real part is written.
        """
        if self._validate:
            self._check_spin(ispin)
            self._check_k(ik, self._nks)
        idx = ik + self._nks * (ispin - 1)
        file = self._snapshot_file(directory, ispin, ik)
        with get_sile(file, "w") as fh:
            fh.write_density_matrix(
                self._DMK[idx],
                self._k(ispin)[ik],
                self._paraV.nrow,
                self._paraV.ncol,
            )

    def read_DMK(self, directory, ispin: int, ik: int) -> None:
        """Read k-point `ik` of spin `ispin` (1-based) from ``directory/SPIN{ispin}_{ik}.dmk``

        A missing file leaves the buffer untouched.
        If the stored k-point or dimensions do not match the buffer, a
        `DimensionMismatchWarning` is issued (and the buffer is untouched)
        or a `DimensionMismatchError` is raised, depending on `on_mismatch`.
        """
        if self._validate:
            self._check_spin(ispin)
            self._check_k(ik, self._nks)
        idx = ik + self._nks * (ispin - 1)
        file = self._snapshot_file(directory, ispin, ik)
        if not file.is_file():
            info(
                MissingSnapshotInfo(
                    f"{self.__class__.__name__}.read_DMK could not find {file}, "
                    "the density matrix is left untouched"
                )
            )
            return

        k, DMK = get_sile(file).read_density_matrix()
        expected = (self._paraV.nrow, self._paraV.ncol)
        msg = None
        if DMK.shape != expected:
            msg = f"dimensions {DMK.shape} != {expected}"
        elif not np.allclose(k, self._k(ispin)[ik], atol=1e-5):
            msg = f"k-point {k} != {self._k(ispin)[ik]}"
        if msg is not None:
            msg = f"{self.__class__.__name__}.read_DMK found mismatching {msg} in {file}"
            if self._on_mismatch == "raise":
                raise DimensionMismatchError(msg)
            warn(DimensionMismatchWarning(f"{msg}, the density matrix is left untouched"))
            return

        self._DMK[idx][:] = DMK.ravel()

    store = write_DMK
    load = read_DMK
