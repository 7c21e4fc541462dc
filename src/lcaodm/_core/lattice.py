# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
""" Define a lattice with cell-parameters and supercells

This class is the basis of the periodic images that the density matrix
in real space is indexed with.
"""
from __future__ import annotations

import numpy as np
import numpy.typing as npt
from numpy import dot, ndarray

import lcaodm._array as _a
from lcaodm._internal import set_module
from lcaodm.messages import warn

__all__ = ["Lattice"]


def _fnorm(array: ndarray) -> ndarray:
    return np.sqrt((array * array).sum(-1))


@set_module("lcaodm")
class Lattice:
    r"""A cell class to retain lattice vectors and a supercell structure

    The supercell structure is comprising the *primary* unit-cell and neighboring
    unit-cells. The number of supercells is given by the attribute `nsc` which
    is a vector with 3 elements, one per lattice vector. It describes *how many*
    times the primary unit-cell is extended along the i'th lattice vector.
    For ``nsc[i] == 3`` the supercell is made up of 3 unit-cells. One *behind*, the
    primary unit-cell and one *after*.

    Parameters
    ----------
    cell :
       the lattice parameters of the unit cell (the actual cell
       is returned from `tocell`.
    nsc :
       number of supercells along each lattice vector
    """

    __slots__ = ("cell", "nsc", "_sc_off")

    def __init__(self, cell: npt.ArrayLike, nsc: npt.ArrayLike = None):
        if nsc is None:
            nsc = [1, 1, 1]

        self.cell = self.tocell(cell)
        if np.any(self.length < 1e-7):
            warn(
                f"{self.__class__.__name__} got initialized with one or more "
                "lattice vector(s) with 0 length. Use with care."
            )

        self.nsc = _a.onesi(3)
        self.set_nsc(nsc=nsc)

    @property
    def length(self) -> ndarray:
        """Length of each lattice vector"""
        return _fnorm(self.cell)

    def set_nsc(self, nsc) -> None:
        """Sets the number of supercells in the 3 different cell directions

        Parameters
        ----------
        nsc : list of int
           number of supercells in each direction, a ``None`` entry keeps
           the current value
        """
        for i in range(3):
            if nsc[i] is not None:
                # a zero count means only the primary cell
                self.nsc[i] = max(nsc[i], 1)
        if np.sum(self.nsc % 2) != 3:
            raise ValueError(
                "Supercells has to be of un-even size. The primary cell counts "
                + "one, all others count 2"
            )

        # primary cell first, then the first lattice vector runs fastest
        hsc = self.nsc // 2
        z, y, x = np.meshgrid(
            *[_a.arangei(-h, h + 1) for h in hsc[::-1]], indexing="ij"
        )
        off = np.stack([x.ravel(), y.ravel(), z.ravel()], axis=1)
        primary = np.all(off == 0, axis=1)
        self._sc_off = np.concatenate([off[primary], off[~primary]])

    @property
    def sc_off(self) -> ndarray:
        """Integer supercell offsets"""
        return self._sc_off

    @property
    def icell(self) -> ndarray:
        """Returns the reciprocal (inverse) cell for the `Lattice`.

        Note: The returned vectors are still in ``[0, :]`` format
        and not as returned by an inverse LAPACK algorithm.
        """
        return np.linalg.inv(self.cell).T

    @property
    def rcell(self) -> ndarray:
        """Returns the reciprocal cell for the `Lattice` with ``2*np.pi``

        Note: The returned vectors are still in [0, :] format
        and not as returned by an inverse LAPACK algorithm.
        """
        return self.icell * (2 * np.pi)

    def offset(self, isc=None) -> ndarray:
        """Returns the supercell offset of the supercell index"""
        if isc is None:
            return _a.arrayd([0, 0, 0])
        return dot(isc, self.cell)

    @staticmethod
    def tocell(*args) -> ndarray:
        r"""Returns a 3x3 unit-cell dependent on the input

        1 argument
          a unit-cell along Cartesian coordinates with side-length
          equal to the argument.

        3 arguments
          the diagonal components of a Cartesian unit-cell

        9 arguments
          the cell parameters give as is
        """
        # Convert into true array (flattened)
        args = _a.asarrayd(args).ravel()
        nargs = len(args)

        # A square-box
        if nargs == 1:
            return np.diag([args[0]] * 3)

        # Diagonal components
        if nargs == 3:
            return np.diag(args)

        # Complete cell
        if nargs == 9:
            return args.copy().reshape(3, 3)

        raise ValueError(
            "Creating a unit-cell has to have 1, 3 or 9 arguments, please correct."
        )

    def __str__(self) -> str:
        """Returns a string representation of the object"""
        # Create format for lattice vectors
        s = ",\n ".join(["ABC"[i] + "=[{:.4f}, {:.4f}, {:.4f}]" for i in range(3)])
        s = ("{}{{nsc: [{:} {:} {:}],\n " + s + "\n}}").format(
            self.__class__.__name__, *self.nsc, *self.cell.ravel()
        )
        return s

    def __repr__(self) -> str:
        a, b, c = self.length
        return f"<{self.__module__}.{self.__class__.__name__} a={a:.4f}, b={b:.4f}, c={c:.4f}, nsc={self.nsc}>"

