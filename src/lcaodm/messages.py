# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

""" Module to expose messages to users

These routines implement a layer of interaction with the user.
The warning routines and error handling should be passed through these
routines.

More specifically we do not like the *very* verbose warnings issued through

>>> import warnings
>>> warnings.warn('Help!')
__main__:1: UserWarning: Help!

We prefer the short context form where the originating file and line are not
shown, which is particularly useful when the installation path is complex.
"""
import warnings

from ._internal import set_module

__all__ = ["LcaoDMInfo", "LcaoDMWarning", "LcaoDMException", "LcaoDMError"]
__all__ += [
    "InvalidConfigError",
    "OwnershipViolation",
    "ValidationError",
    "DimensionMismatchError",
    "DimensionMismatchWarning",
    "MissingSnapshotInfo",
]
__all__ += ["warn", "info"]

# The local registry for warnings issued
_lcaodm_warn_registry = {}


@set_module("lcaodm")
class LcaoDMException(Exception):
    """lcaodm exception"""


@set_module("lcaodm")
class LcaoDMError(LcaoDMException):
    """lcaodm error"""


@set_module("lcaodm")
class LcaoDMWarning(LcaoDMException, UserWarning):
    """lcaodm warnings"""


@set_module("lcaodm")
class LcaoDMInfo(LcaoDMWarning):
    """lcaodm informations"""


@set_module("lcaodm")
class InvalidConfigError(LcaoDMError, ValueError):
    """Raised for configurations that can never be run, e.g. a wrong spin multiplicity"""


@set_module("lcaodm")
class OwnershipViolation(LcaoDMError):
    """An atom pair is requested which is not resident on this process

    This signals that the neighbor list and the orbital distribution
    are inconsistent.
    """


@set_module("lcaodm")
class ValidationError(LcaoDMError, IndexError):
    """Failed range or structure check, only raised in validation mode"""


@set_module("lcaodm")
class DimensionMismatchError(LcaoDMError, ValueError):
    """Stored data does not have the dimensions of the in-memory data"""


@set_module("lcaodm")
class DimensionMismatchWarning(LcaoDMWarning):
    """Stored data does not have the dimensions of the in-memory data, data is left untouched"""


@set_module("lcaodm")
class MissingSnapshotInfo(LcaoDMInfo):
    """A requested snapshot does not exist, the in-memory data is used as is"""


@set_module("lcaodm")
def warn(message, category=None, register=False):
    """Show warnings in short context form with lcaodm

    Parameters
    ----------
    message : str, Warning
       the warning to issue, default to issue a `LcaoDMWarning`
    category : Warning, optional
       the category of the warning to issue. Default to `LcaoDMWarning', unless `message` is
       a subclass of `Warning`
    register : bool, optional
       whether the warning is registered to limit the number of times this is output
    """
    if isinstance(message, Warning):
        category = message.__class__
    elif category is None:
        category = LcaoDMWarning
    if register:
        warnings.warn_explicit(
            message, category, "warn", 0, registry=_lcaodm_warn_registry
        )
    else:
        warnings.warn_explicit(message, category, "warn", 0)


@set_module("lcaodm")
def info(message, category=None, register=False):
    """Show info in short context form with lcaodm

    Parameters
    ----------
    message : str, Warning
       the information to issue, default to issue a `LcaoDMInfo`
    category : Warning, optional
       the category of the warning to issue. Default to `LcaoDMInfo', unless `message` is
       a subclass of `Warning`
    register : bool, optional
       whether the information is registered to limit the number of times this is output
    """
    if isinstance(message, Warning):
        category = message.__class__
    elif category is None:
        category = LcaoDMInfo
    if register:
        warnings.warn_explicit(
            message, category, "info", 0, registry=_lcaodm_warn_registry
        )
    else:
        warnings.warn_explicit(message, category, "info", 0)
