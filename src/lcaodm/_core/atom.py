# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

from collections.abc import Iterable
from numbers import Integral
from typing import Optional, Union

import numpy as np

import lcaodm._array as _a
from lcaodm._internal import set_module

__all__ = ["Atom", "Atoms"]


@set_module("lcaodm")
class Atom:
    """Atomic information for a single atomic species

    Only the quantities needed to lay out a localized basis are retained:
    the number of orbitals and the cutoff radius of the orbitals.

    Parameters
    ----------
    Z :
        determine species for the atomic species (a number or a label)
    no :
        number of orbitals on this atom
    R :
        cutoff radius of the orbitals on this atom, a negative value
        means that the atom does not interact with any other atom
    tag :
        arbitrary designation for user handling similar atoms with
        different settings (defaults to the label of the atom)

    Examples
    --------
    >>> C = Atom(6, no=4, R=2.5)
    >>> C_surf = Atom(6, no=4, R=2.5, tag="surface")
    """

    __slots__ = ("Z", "no", "R", "tag")

    def __init__(
        self,
        Z: Union[int, str],
        no: int = 1,
        R: float = -1.0,
        tag: Optional[str] = None,
    ):
        if no < 0:
            raise ValueError(
                f"{self.__class__.__name__} requires a non-negative number of orbitals."
            )
        self.Z = Z
        self.no = int(no)
        self.R = float(R)
        if tag is None:
            tag = str(Z)
        self.tag = tag

    def maxR(self) -> float:
        """Return the maximum range of the orbitals on this atom"""
        return self.R

    def __eq__(self, other) -> bool:
        # equal atoms are grouped into one species by `Atoms`
        if not isinstance(other, Atom):
            return False
        return (
            self.Z == other.Z
            and self.no == other.no
            and self.R == other.R
            and self.tag == other.tag
        )

    def __str__(self) -> str:
        return f"{self.__class__.__name__}{{{self.tag}, Z: {self.Z}, no: {self.no}, R: {self.R:.5f}}}"

    def __repr__(self) -> str:
        return f"<{self.__module__}.{self.__class__.__name__} {self.tag}, Z={self.Z}, no={self.no}, R={self.R:.3f}>"


@set_module("lcaodm")
class Atoms:
    """Efficient collection of `Atom` objects

    A container object for `Atom` objects in a specific order.
    No two `Atom` objects will be duplicated and indices will be used
    to determine which `Atom` any indexable atom corresponds to.

    Parameters
    ----------
    atoms :
       atoms to be contained in this list of atoms
       If a single `Atom` it will be the only atom in the resulting
       class repeated `na` times.
       If a list, it will create all unique atoms and retain these.
    na :
       total number of atoms, if ``len(atoms)`` is smaller than `na` it will
       be repeated to match `na`.

    Examples
    --------
    >>> atoms = Atoms(Atom(1), na=5)
    >>> atoms = Atoms([Atom(1), Atom(2), Atom(1)])
    """

    __slots__ = ("_atom", "_species", "_firsto", "_index_in_species")

    def __init__(self, atoms=None, na: Optional[int] = None):
        if atoms is None:
            atoms = Atom(1)

        if isinstance(atoms, Atom):
            uatoms = [atoms]
            species = [0]

        elif isinstance(atoms, Atoms):
            uatoms = atoms.atom
            species = atoms.species.tolist()

        elif isinstance(atoms, (str, Integral)):
            uatoms = [Atom(atoms)]
            species = [0]

        elif isinstance(atoms, Iterable):
            uatoms = []
            species = []
            for a in atoms:
                if not isinstance(a, Atom):
                    a = Atom(a)
                try:
                    s = uatoms.index(a)
                except ValueError:
                    s = len(uatoms)
                    uatoms.append(a)
                species.append(s)

        else:
            raise ValueError(f"atoms keyword type is not acceptable {type(atoms)}")

        if na is None:
            na = len(species)
        if na % len(species) != 0:
            raise ValueError(
                f"{self.__class__.__name__} cannot repeat {len(species)} atoms to {na} atoms"
            )

        self._atom = list(uatoms)
        self._species = np.tile(_a.arrayi(species), na // len(species))
        self._update_orbitals()

    def _update_orbitals(self):
        """Internal routine for updating the `firsto` attribute"""
        # Get number of orbitals per specie
        uorbs = _a.arrayi([a.no for a in self.atom])
        self._firsto = np.insert(_a.cumsumi(uorbs[self.species]), 0, 0)

        # running index of each atom within its own species
        self._index_in_species = _a.zerosi(len(self._species))
        count = _a.zerosi(len(self._atom))
        for ia, s in enumerate(self._species):
            self._index_in_species[ia] = count[s]
            count[s] += 1

    @property
    def atom(self) -> list[Atom]:
        """List of unique atoms in this group of atoms"""
        return self._atom

    @property
    def nspecies(self) -> int:
        """Number of different species"""
        return len(self._atom)

    @property
    def species(self) -> np.ndarray:
        """List of atomic species"""
        return self._species

    @property
    def no(self) -> int:
        """Total number of orbitals in this list of atoms"""
        return int(self._firsto[-1])

    @property
    def orbitals(self) -> np.ndarray:
        """Array of orbitals of the contained objects"""
        return np.diff(self.firsto)

    @property
    def firsto(self) -> np.ndarray:
        """First orbital of the corresponding atom in the consecutive list of orbitals"""
        return self._firsto

    @property
    def lasto(self) -> np.ndarray:
        """Last orbital of the corresponding atom in the consecutive list of orbitals"""
        return self._firsto[1:] - 1

    @property
    def maxR(self) -> np.ndarray:
        """Orbital cutoff radius of each atom"""
        return _a.arrayd([a.R for a in self.atom])[self.species]

    def iat2iait(self, iat: int) -> tuple[int, int]:
        """Species and index within the species of the atom `iat`"""
        return int(self._species[iat]), int(self._index_in_species[iat])

    def itia2iat(self, it: int, ia: int) -> int:
        """Atom index of the `ia`'th atom of species `it`"""
        idx = (self._species == it).nonzero()[0]
        return int(idx[ia])

    def __len__(self) -> int:
        """Return number of atoms in the object"""
        return len(self._species)

    def __iter__(self):
        """Loop on all atoms, yielding the `Atom` object of each atom"""
        for s in self._species:
            yield self._atom[s]

    def __getitem__(self, key) -> Union[Atom, list[Atom]]:
        """Return an `Atom` object corresponding to the key(s)"""
        if isinstance(key, Integral):
            return self._atom[self._species[key]]
        return [self._atom[s] for s in self._species[key]]

    def __str__(self) -> str:
        """Return the `Atoms` in str"""
        s = f"{self.__class__.__name__}{{species: {len(self._atom)},\n"
        for a, idx in zip(self._atom, range(len(self._atom))):
            n = (self._species == idx).sum()
            s += " {1}: {0},\n".format(n, str(a).replace("\n", "\n "))
        return f"{s}}}"
