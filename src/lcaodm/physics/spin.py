# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

from numbers import Integral
from typing import Union

from lcaodm._internal import set_module
from lcaodm.messages import InvalidConfigError

__all__ = ["Spin"]


@set_module("lcaodm.physics")
class Spin:
    r"""Spin class to determine configurations and the number of stored spin components

    The spin configuration is given by the physical spin flag of a calculation,
    1 (unpolarized), 2 (collinear polarized) or 4 (non-collinear).
    A non-collinear calculation stores a single density matrix with a doubled
    basis dimension (two spinor components per orbital), hence

    >>> Spin(1).nspin, Spin(2).nspin, Spin(4).nspin
    (1, 2, 1)
    >>> Spin(4).npol
    2

    Parameters
    ----------
    kind : str or int, Spin, optional
       the spin flag, or one of ``"unpolarized"``, ``"polarized"`` and
       ``"non-collinear"``

    Raises
    ------
    InvalidConfigError
       if the spin configuration could not be determined
    """

    #: Constant for an un-polarized spin configuration
    UNPOLARIZED = 1
    #: Constant for a polarized spin configuration
    POLARIZED = 2
    #: Constant for a non-collinear spin configuration
    NONCOLINEAR = 4

    _names = {
        UNPOLARIZED: "unpolarized",
        POLARIZED: "polarized",
        NONCOLINEAR: "non-collinear",
    }

    __slots__ = ("_kind",)

    def __init__(self, kind: Union[str, int, Spin] = UNPOLARIZED):
        if isinstance(kind, Spin):
            kind = kind.kind
        elif isinstance(kind, str):
            kind = {name: k for k, name in self._names.items()}.get(kind.lower())

        if not isinstance(kind, Integral) or kind not in self._names:
            raise InvalidConfigError(
                f"{self.__class__.__name__} initialization went wrong because of wrong "
                "kind specification, only 1, 2 or 4 spin components are allowed!"
            )

        self._kind = int(kind)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}{{{self._names[self.kind]}}}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self._names[self.kind]}>"

    @property
    def kind(self) -> int:
        """The physical spin flag (1, 2 or 4)"""
        return self._kind

    @property
    def nspin(self) -> int:
        """Number of separately stored density matrices"""
        if self.is_polarized:
            return 2
        return 1

    @property
    def npol(self) -> int:
        """Number of spinor components per orbital"""
        if self.is_noncolinear:
            return 2
        return 1

    @property
    def is_unpolarized(self) -> bool:
        """True if the configuration is not polarized"""
        return self.kind == Spin.UNPOLARIZED

    @property
    def is_polarized(self) -> bool:
        """True if the configuration is polarized"""
        return self.kind == Spin.POLARIZED

    @property
    def is_noncolinear(self) -> bool:
        """True if the configuration non-collinear"""
        return self.kind == Spin.NONCOLINEAR
