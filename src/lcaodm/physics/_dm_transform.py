# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
r""" Fourier transform of the density matrix from k-space to real space

For all stored atom pairs :math:`(i, j)` and lattice translations :math:`\mathbf R`

.. math::
    \mathbf D_{ij}(\mathbf R)_{\mu\nu} = \sum_{\mathbf k} e^{i 2\pi \mathbf k\cdot\mathbf R}
        \mathbf D(\mathbf k)_{\mu\nu}

The k-space density matrices are dense column-major buffers of the local
orbitals, i.e. local element :math:`(r, c)` is located at ``c * nrow + r``.
The real space blocks are row-major, so each block row is a strided
read of the k-space buffer accumulated into a contiguous block row.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from scipy.linalg.blas import daxpy, zaxpy

from lcaodm._core.parallel import ParallelOrbitals
from lcaodm._core.sparse_block import AtomPair, SparseBlockMatrix
from lcaodm.messages import OwnershipViolation, ValidationError

__all__ = ["transform", "transform_reference"]

_log = logging.getLogger(__name__)


def _pair_origin(pair: AtomPair) -> tuple[int, int]:
    """Local row and column of the first orbital of the pair"""
    if pair.row_ap == -1 or pair.col_ap == -1:
        raise OwnershipViolation(
            f"atom pair {pair.identity} does not belong to this process"
        )
    return pair.row_ap, pair.col_ap


def _phases(k: np.ndarray, R) -> np.ndarray:
    r"""Phases :math:`e^{i2\pi\mathbf k\cdot\mathbf R}` for all k-points"""
    # a single exponential gives both the cosine and the sine
    return np.exp(2j * np.pi * (k @ np.asarray(R, dtype=np.float64)))


def _check_buffers(DMK: Sequence[np.ndarray], paraV: ParallelOrbitals) -> None:
    for ik, buf in enumerate(DMK):
        if buf.size != paraV.nloc:
            raise ValidationError(
                f"density matrix buffer {ik} has {buf.size} elements, expected "
                f"{paraV.nloc} = {paraV.nrow}x{paraV.ncol}"
            )


def _transform_gamma(
    DMR: SparseBlockMatrix,
    DMK: Sequence[np.ndarray],
    k: np.ndarray,
    paraV: ParallelOrbitals,
    validate: bool,
) -> None:
    """Gamma-point only, the phase is 1 and the buffer is real"""
    DMR.fix_gamma()
    if validate:
        if len(DMK) != 1:
            raise ValidationError(
                f"Gamma-point transform requires a single k-point, got {len(DMK)}"
            )
        for pair in DMR:
            if pair.get_R_size() != 1 or pair.find_R((0, 0, 0)) != 0:
                raise ValidationError(
                    f"Gamma-point transform requires the single R=(0, 0, 0) for atom pair {pair.identity}"
                )

    ld = paraV.nrow
    x = DMK[0]
    for pair in DMR:
        row_ap, col_ap = _pair_origin(pair)
        n = pair.col_size
        for _, block in pair:
            y = block.data.ravel()
            for mu in range(pair.row_size):
                daxpy(
                    x, y, n=n, a=1.0, offx=col_ap * ld + row_ap + mu, incx=ld, offy=mu * n
                )


def _transform_k_real(
    DMR: SparseBlockMatrix,
    DMK: Sequence[np.ndarray],
    k: np.ndarray,
    paraV: ParallelOrbitals,
    validate: bool,
) -> None:
    """Complex k-space buffers summed into real blocks, only the real part is retained"""
    # skip the interleaved imaginary parts
    ld2 = 2 * paraV.nrow
    # real and imaginary parts of the buffers
    xs = [buf.view(np.float64) for buf in DMK]
    phases = {}
    for pair in DMR:
        row_ap, col_ap = _pair_origin(pair)
        n = pair.col_size
        for R, block in pair:
            phase = phases.get(R)
            if phase is None:
                phase = phases[R] = _phases(k, R)
            y = block.data.ravel()
            for x, ph in zip(xs, phase):
                cosp, sinp = ph.real, ph.imag
                off = 2 * (col_ap * paraV.nrow + row_ap)
                for mu in range(pair.row_size):
                    offy = mu * n
                    daxpy(x, y, n=n, a=cosp, offx=off, incx=ld2, offy=offy)
                    # i^2 = -1
                    daxpy(x, y, n=n, a=-sinp, offx=off + 1, incx=ld2, offy=offy)
                    off += 2


def _transform_k_complex(
    DMR: SparseBlockMatrix,
    DMK: Sequence[np.ndarray],
    k: np.ndarray,
    paraV: ParallelOrbitals,
    validate: bool,
) -> None:
    """Complex k-space buffers summed into complex blocks"""
    ld = paraV.nrow
    phases = {}
    for pair in DMR:
        row_ap, col_ap = _pair_origin(pair)
        n = pair.col_size
        for R, block in pair:
            phase = phases.get(R)
            if phase is None:
                phase = phases[R] = _phases(k, R)
            y = block.data.ravel()
            for x, ph in zip(DMK, phase):
                for mu in range(pair.row_size):
                    zaxpy(
                        x, y, n=n, a=ph, offx=col_ap * ld + row_ap + mu, incx=ld, offy=mu * n
                    )


# (k-space kind, real space kind) -> transform
_TRANSFORMS = {
    ("f", "f"): _transform_gamma,
    ("c", "f"): _transform_k_real,
    ("c", "c"): _transform_k_complex,
}


def transform(
    DMR: SparseBlockMatrix,
    DMK: Sequence[np.ndarray],
    k: np.ndarray,
    paraV: ParallelOrbitals,
    validate: bool = False,
) -> None:
    """Sum the k-space density matrices of one spin into the real space matrix

    `DMR` is zeroed before the accumulation.

    Parameters
    ----------
    DMR :
        real space matrix, all its blocks are overwritten
    DMK :
        dense column-major buffers of the local orbitals, one per k-point
    k :
        k-points in reduced coordinates, ``len(k) == len(DMK)``
    paraV :
        the distribution of the orbitals
    validate :
        check buffer dimensions and pre-conditions

    Raises
    ------
    TypeError
        if the data types of `DMK` and `DMR` cannot be combined
    OwnershipViolation
        if an atom pair is not stored on this process
    ValidationError
        for failed checks, only when `validate` is true
    """
    # the result holds only the sum over the given k-points
    DMR.set_zero()
    if len(DMK) == 0:
        return
    kinds = (DMK[0].dtype.kind, DMR.dtype.kind)
    func = _TRANSFORMS.get(kinds)
    if func is None:
        raise TypeError(
            f"transform cannot sum {DMK[0].dtype} k-space matrices into a {DMR.dtype} real space matrix"
        )
    for buf in DMK:
        if buf.dtype != DMK[0].dtype:
            raise TypeError("transform requires all k-space matrices to have the same data type")
    if validate:
        _check_buffers(DMK, paraV)
        if len(k) != len(DMK):
            raise ValidationError(
                f"transform got {len(DMK)} k-space matrices but {len(k)} k-points"
            )
    _log.debug(
        f"transform {func.__name__} pairs={DMR.size_atom_pairs()} nk={len(DMK)} "
        f"nnz={DMR.nnz}"
    )
    func(DMR, DMK, np.asarray(k, dtype=np.float64).reshape(-1, 3), paraV, validate)


def transform_reference(
    DMR: SparseBlockMatrix,
    DMK: Sequence[np.ndarray],
    k: np.ndarray,
    paraV: ParallelOrbitals,
) -> None:
    """Element by element version of `transform`

    This is slow and only meant for verification.
    """
    DMR.set_zero()
    k = np.asarray(k, dtype=np.float64).reshape(-1, 3)
    real = DMR.dtype.kind != "c"
    nrow = paraV.nrow
    for pair in DMR:
        row_ap, col_ap = _pair_origin(pair)
        for R, block in pair:
            for buf, phase in zip(DMK, _phases(k, R)):
                for i in range(pair.row_size):
                    for j in range(pair.col_size):
                        value = phase * buf[(col_ap + j) * nrow + row_ap + i]
                        if real:
                            value = value.real
                        block.add_element(i, j, value)
