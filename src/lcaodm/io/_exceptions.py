# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

from lcaodm._internal import set_module
from lcaodm.messages import LcaoDMError, LcaoDMInfo, LcaoDMWarning

__all__ = ["SileError", "SileWarning", "SileInfo"]


@set_module("lcaodm.io")
class SileError(LcaoDMError, IOError):
    """Define an error object related to the Sile objects"""

    def __init__(self, value, obj=None):
        self.value = value
        self.obj = obj

    def __str__(self):
        if self.obj:
            return f"{self.value!s} in {self.obj!s}"
        return self.value


@set_module("lcaodm.io")
class SileWarning(LcaoDMWarning):
    """Warnings that informs users of things to be carefull about when using their retrieved data

    These warnings should be issued whenever a read/write routine is unable to retrieve all information
    but are non-influential in the sense that lcaodm is still able to perform the action.
    """


@set_module("lcaodm.io")
class SileInfo(LcaoDMInfo):
    """Information for the user, this is hidden in a warning, but is not as severe so as to issue a warning."""
