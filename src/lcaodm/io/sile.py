# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

import gzip
import logging
from collections.abc import Callable
from functools import wraps
from os.path import basename
from pathlib import Path

from lcaodm._internal import set_module

from ._exceptions import SileError

# Public used objects
__all__ = ["add_sile", "get_sile_class", "get_sile", "get_siles"]
__all__ += ["BaseSile", "Sile"]

# Decorators or sile-specific functions
__all__ += ["sile_fh_open", "sile_raise_write", "sile_raise_read"]

# Global container of all Sile rules
# suffix -> (class, gzip)
__sile_rules = {}


@set_module("lcaodm.io")
def add_sile(suffix: str, cls, gzip: bool = False):
    """Add files to the global lookup table

    Public for attaching lookup tables for allowing
    users to attach files externally.

    Parameters
    ----------
    suffix : str
         The file-name suffix
    cls : child of BaseSile
         An object that is associated with the respective file.
         It must be inherited from `BaseSile`.
    gzip : bool, optional
         Whether files with ``.gz`` endings can be read.
    """
    if not issubclass(cls, BaseSile):
        raise ValueError(f"Class {cls.__name__} must be a subclass of BaseSile!")

    # Only add pure suffixes...
    if suffix.startswith("."):
        suffix = suffix[1:]

    __sile_rules[suffix] = (cls, gzip)


@set_module("lcaodm.io")
def get_siles() -> list:
    """Retrieve all files registered in the global lookup table"""
    return [cls for cls, _ in __sile_rules.values()]


@set_module("lcaodm.io")
def get_sile_class(filename):
    """Retrieve a class from the global lookup table via filename and the extension

    Parameters
    ----------
    filename : str or pathlib.Path
       the file to be quried for a correct `Sile` object.

    Raises
    ------
    NotImplementedError
       if no sile is registered for the file suffix
    """
    filename = Path(filename)
    suffixes = filename.suffixes
    is_gz = len(suffixes) > 0 and suffixes[-1] == ".gz"
    if is_gz:
        suffixes = suffixes[:-1]
    if len(suffixes) > 0:
        cls, gz = __sile_rules.get(suffixes[-1][1:], (None, False))
        if cls is not None and (gz or not is_gz):
            return cls
    raise NotImplementedError(
        f"Sile for file '{filename}' could not be found, possibly the file has not been implemented."
    )


@set_module("lcaodm.io")
def get_sile(file, *args, **kwargs):
    """Retrieve an object from the global lookup table via filename and the extension

    Internally this is equivalent to ``get_sile_class(...)()``.

    Parameters
    ----------
    file : str or pathlib.Path
       the file to be quried for a correct `Sile` object.
    *args, **kwargs :
       passed directly to the `Sile` class

    Examples
    --------
    >>> with get_sile("SPIN1_0.dmk", "w") as fh:
    ...     fh.write_density_matrix(DMK, k, nrow, ncol)
    """
    return get_sile_class(file)(file, *args, **kwargs)


@set_module("lcaodm.io")
class BaseSile:
    """Base class for all lcaodm files"""

    def __init__(self, *args, **kwargs):
        """Just to pass away the args and kwargs"""

    @property
    def file(self) -> Path:
        """File of the current `Sile`"""
        return self._file

    @property
    def base_file(self) -> str:
        """File of the current `Sile`"""
        return basename(self._file)

    def _setup(self, *args, **kwargs):
        """Setup the `Sile` after initialization

        Inherited method for setting up the sile.

        This method can be overwritten.
        """

    def _base_setup(self, *args, **kwargs):
        """Setup the `Sile` after initialization

        Inherited method for setting up the sile.
        """
        base = kwargs.get("base", None)
        if base is None:
            # Extract from filename
            self._directory = self._file.parent
        else:
            self._directory = Path(base)
        self._setup(*args, **kwargs)

    def __getattr__(self, name):
        """Override to check the handle"""
        if name == "fh":
            raise AttributeError(
                f"The filehandle for {self.file} has not been opened yet..."
            )
        return getattr(self.fh, name)

    def _log(self, msg, *args, level=logging.INFO, **kwargs):
        """Provide a log message to the logging mechanism"""
        if not hasattr(self, "_logger"):
            self._logger = logging.getLogger(
                f"{self.__module__}.{self.__class__.__name__}|{self.base_file}"
            )
        self._logger.log(level, msg, *args, **kwargs)

    def __str__(self):
        """Return a representation of the `Sile`"""
        return f"{self.__class__.__name__}({self.base_file!s}, base={self._directory!s})"


def sile_fh_open(func: Callable):
    """Method decorator for objects to directly implement opening of the
    file-handle upon entry (if it isn't already).

    Nested calls re-use the open file-handle.
    """

    @wraps(func)
    def pre_open(self, *args, **kwargs):
        if hasattr(self, "fh"):
            return func(self, *args, **kwargs)
        with self:
            return func(self, *args, **kwargs)

    return pre_open


@set_module("lcaodm.io")
class Sile(BaseSile):
    """Base class for ASCII files

    All ASCII files that needs to be added to the global lookup table can
    with benefit inherit this class.
    """

    def __init__(self, filename, mode="r", *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._mode = mode
        self._file = Path(filename)

        self._fh_opens = 0
        self._line = 0

        # Initialize
        self._base_setup(*args, **kwargs)

    def _open(self):
        # track how many times this has been called
        if hasattr(self, "fh"):
            self.fh.seek(0)
        else:
            self._fh_opens = 0

            if self.file.suffix == ".gz":
                # snapshots are always text files
                self.fh = gzip.open(str(self.file), mode=self._mode[0] + "t")
            else:
                self.fh = self.file.open(self._mode)

        # the file should restart the file-read (as per instructed)
        self._line = 0

        self._fh_opens += 1

    def __enter__(self):
        """Opens the output file and returns it self"""
        self._open()
        return self

    def __exit__(self, type, value, traceback):
        # clean-up so that it does not exist
        self.close()
        return False

    def close(self):
        # decrement calls
        self._fh_opens -= 1
        if self._fh_opens <= 0:
            self._line = 0
            self.fh.close()
            delattr(self, "fh")
            self._fh_opens = 0

    def readline(self) -> str:
        r"""Reads the next line of the file, an empty string at the end of the file"""
        self._line += 1
        return self.fh.readline()

    def _write(self, *args, **kwargs):
        """Wrapper to default the write statements"""
        self.fh.write(*args, **kwargs)


def sile_raise_write(self, ok=("w", "a")) -> None:
    """Raise a `SileError` if the sile is not opened for writing"""
    if not any(O in self._mode for O in ok):
        raise SileError(
            f"Writing to file not possible; allowed modes={ok}, used mode={self._mode}",
            self,
        )


def sile_raise_read(self, ok=("r", "a")) -> None:
    """Raise a `SileError` if the sile is not opened for reading"""
    if not any(O in self._mode for O in ok):
        raise SileError(
            f"Reading file not possible; allowed modes={ok}, used mode={self._mode}",
            self,
        )
