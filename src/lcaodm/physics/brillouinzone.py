# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Brillouin zone classes
=========================

The `BrillouinZone` holds the k-points, in reduced coordinates, at which the
density matrix is sampled.

For spin-polarized calculations the k-points of the second spin are stored
after those of the first spin, see `BrillouinZone.spin_duplicate`.
"""
from __future__ import annotations

from collections.abc import Sequence
from numbers import Integral
from typing import Optional, Union

import numpy as np
import numpy.typing as npt
from numpy import dot

import lcaodm._array as _a
from lcaodm._core.lattice import Lattice
from lcaodm._internal import set_module

__all__ = ["BrillouinZone"]


@set_module("lcaodm.physics")
class BrillouinZone:
    """A class to construct Brillouin zone related quantities

    It takes any object (which has access to cell-vectors) as an argument
    and can then return the k-points in non-reduced units from reduced units.

    Parameters
    ----------
    parent : object or array-like
       An object with associated ``parent.cell`` and ``parent.rcell`` or
       an array of floats which may be turned into a `Lattice`
    k : array-like, optional
       k-points that this Brillouin zone represents, defaults to the Gamma-point
    weight : scalar or array-like, optional
       weights for the k-points.
    """

    def __init__(self, parent, k=None, weight=None):
        self.set_parent(parent)

        # Gamma point
        if k is None:
            self._k = _a.zerosd([1, 3])
            self._w = _a.onesd(1)
        else:
            self._k = _a.arrayd(k).reshape(-1, 3)
            self._w = _a.emptyd(len(self._k))
            if weight is None:
                weight = 1.0 / len(self._k)
            self._w[:] = weight

    def set_parent(self, parent) -> None:
        """Update the parent associated to this object

        Parameters
        ----------
        parent : object or array_like
           an object containing cell vectors
        """
        if hasattr(parent, "cell") and hasattr(parent, "rcell"):
            self.parent = parent
        else:
            self.parent = Lattice(parent)

    def __str__(self):
        """String representation of the BrillouinZone"""
        return f"{self.__class__.__name__}{{nk: {len(self)}}}"

    @classmethod
    def grid(
        cls, parent, nk: Union[Sequence[int], int], centered: bool = True
    ) -> BrillouinZone:
        r"""Create a uniform grid of k-points, without any symmetry reduction

        Parameters
        ----------
        parent : object or array_like
           an object containing cell vectors
        nk :
           number of k-points along each reciprocal lattice vector
        centered :
           whether the grid is :math:`\Gamma`-centered, otherwise it is
           shifted by half a spacing along directions with an even number
           of points

        Examples
        --------
        >>> bz = BrillouinZone.grid(Lattice(3.), [2, 2, 1])
        >>> len(bz)
        4
        """
        if isinstance(nk, Integral):
            nk = [nk] * 3

        k1d = []
        for n in nk:
            n_half = n // 2
            if n % 2 == 1:
                k = _a.aranged(-n_half, n_half + 1) / n
            else:
                k = _a.aranged(-n_half, n_half) / n
                if not centered:
                    k += 0.5 / n
            k1d.append(cls.in_primitive(k))

        # first direction runs fastest
        kz, ky, kx = np.meshgrid(k1d[2], k1d[1], k1d[0], indexing="ij")
        k = np.stack([kx.ravel(), ky.ravel(), kz.ravel()], axis=1)
        return cls(parent, k)

    def spin_duplicate(self, n: int = 2) -> BrillouinZone:
        """A new Brillouin zone with the k-points (and weights) repeated `n` times

        This is the k-point layout of spin-polarized calculations where the
        k-points of each spin are stored consecutively.
        """
        return self.__class__(self.parent, np.tile(self.k, (n, 1)), np.tile(self.weight, n))

    @property
    def k(self) -> np.ndarray:
        """A list of all k-points (if available)"""
        return self._k

    @property
    def weight(self) -> np.ndarray:
        """Weight of the k-points in the `BrillouinZone` object"""
        return self._w

    @property
    def cell(self) -> np.ndarray:
        return self.parent.cell

    @property
    def rcell(self) -> np.ndarray:
        return self.parent.rcell

    def tocartesian(self, k: Optional[npt.ArrayLike] = None) -> np.ndarray:
        """Transfer a k-point in reduced coordinates to the Cartesian coordinates

        Parameters
        ----------
        k :
           k-point in reduced coordinates, defaults to this objects k-points.

        Returns
        -------
        numpy.ndarray
            in units of 1/Ang
        """
        if k is None:
            k = self.k
        return dot(k, self.rcell)

    @staticmethod
    def in_primitive(k: npt.ArrayLike) -> np.ndarray:
        """Move the k-point into the primitive point(s) ]-0.5 ; 0.5]

        Parameters
        ----------
        k : array_like
           k-point(s) to move into the primitive cell
        """
        k = _a.arrayd(k) % 1.0

        # Ensure that we are in the interval ]-0.5; 0.5]
        k[k > 0.5] -= 1

        return k

    def iter(self, ret_weight: bool = False):
        """An iterator for the k-points and (possibly) the weights

        Parameters
        ----------
        ret_weight : bool, optional
          if true, also yield the weight for the respective k-point

        Yields
        ------
        kpt : k-point
        weight : weight of k-point, only if `ret_weight` is true.
        """
        if ret_weight:
            for i in range(len(self)):
                yield self.k[i], self.weight[i]
        else:
            yield from self.k

    __iter__ = iter

    def __len__(self):
        return len(self._k)
