# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""
Snapshots of a density matrix at a single k-point

The file contains the k-point (in reduced coordinates), the dimensions
of the local density matrix buffer and all its values (real parts only)::

    0 0 0

      4 4

     1.000e+00 2.000e-01 0.000e+00 0.000e+00
     ...

Each row of the buffer starts on a new line and at most 8 values
are written per line.
"""
from __future__ import annotations

import logging

import numpy as np
import numpy.typing as npt

import lcaodm._array as _a
from lcaodm._internal import set_module

from ._exceptions import SileError
from .sile import Sile, add_sile, sile_fh_open, sile_raise_read, sile_raise_write

__all__ = ["dmkSile"]


@set_module("lcaodm.io")
class dmkSile(Sile):
    """Density matrix snapshot at a single k-point

    Examples
    --------
    >>> with dmkSile("SPIN1_0.dmk", "w") as fh:
    ...     fh.write_density_matrix(DMK, [0, 0, 0], nrow, ncol)
    >>> k, DM = dmkSile("SPIN1_0.dmk").read_density_matrix()
    """

    #: number of values per line
    _per_line = 8

    @sile_fh_open
    def write_density_matrix(
        self,
        DMK: npt.ArrayLike,
        k: npt.ArrayLike,
        nrow: int,
        ncol: int,
        fmt: str = ".3e",
    ) -> None:
        """Writes the density matrix buffer to the file

        Parameters
        ----------
        DMK :
           the ``nrow * ncol`` values of the buffer, for complex values only
           the real part is written
        k :
           the k-point of the density matrix, in reduced coordinates
        nrow, ncol :
           dimensions of the buffer, written row by row
        fmt :
           format of the values
        """
        sile_raise_write(self)

        DMK = np.asarray(DMK).ravel().real
        if DMK.size != nrow * ncol:
            raise SileError(
                f"{self.__class__.__name__}.write_density_matrix got {DMK.size} values "
                f"for a {nrow}x{ncol} matrix",
                self,
            )
        kx, ky, kz = _a.asarrayd(k).ravel()
        self._write(f"{kx:g} {ky:g} {kz:g}\n")
        self._write(f"\n  {nrow} {ncol}\n")

        per_line = self._per_line
        for row in DMK.reshape(nrow, ncol):
            for j in range(0, ncol, per_line):
                self._write(
                    "\n" + "".join(f" {v:{fmt}}" for v in row[j : j + per_line])
                )
        self._write("\n")
        self._log(f"wrote {nrow}x{ncol} density matrix", level=logging.DEBUG)

    @sile_fh_open
    def read_header(self) -> tuple[np.ndarray, int, int]:
        """Reads the k-point and dimensions of the density matrix

        Returns
        -------
        k : numpy.ndarray
           the k-point in reduced coordinates
        nrow, ncol : int
           dimensions of the stored buffer
        """
        sile_raise_read(self)

        # k-point, blank line and the dimensions
        words = []
        while len(words) < 5:
            line = self.readline()
            if line == "":
                raise SileError(
                    f"{self.__class__.__name__}.read_header could not find the k-point and dimensions",
                    self,
                )
            words.extend(line.split())
        try:
            k = _a.arrayd(words[:3])
            nrow, ncol = int(words[3]), int(words[4])
        except ValueError as e:
            raise SileError(
                f"{self.__class__.__name__}.read_header found a malformed header", self
            ) from e
        if len(words) > 5:
            self._values = words[5:]
        else:
            self._values = []
        return k, nrow, ncol

    @sile_fh_open
    def read_density_matrix(self) -> tuple[np.ndarray, np.ndarray]:
        """Reads the k-point and the density matrix buffer

        Returns
        -------
        k : numpy.ndarray
           the k-point in reduced coordinates
        DMK : numpy.ndarray
           the stored values with shape ``(nrow, ncol)``
        """
        k, nrow, ncol = self.read_header()
        words = self._values + self.fh.read().split()
        try:
            DMK = _a.arrayd(words)
        except ValueError as e:
            raise SileError(
                f"{self.__class__.__name__}.read_density_matrix found non-numeric values", self
            ) from e
        if DMK.size != nrow * ncol:
            raise SileError(
                f"{self.__class__.__name__}.read_density_matrix found {DMK.size} values, "
                f"expected {nrow}x{ncol}",
                self,
            )
        self._log(f"read {nrow}x{ncol} density matrix", level=logging.DEBUG)
        return k, DMK.reshape(nrow, ncol)


add_sile("dmk", dmkSile, gzip=True)
