# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

r""" Internal lcaodm-only methods that should not be used outside """

__all__ = ["set_module"]


def set_module(module: str):
    r"""Decorator for overriding ``__module__`` on a function or class

    Public objects then show up where they are exposed, e.g. ``lcaodm.Geometry``
    rather than ``lcaodm._core.geometry.Geometry``.
    """

    def deco(obj):
        obj.__module__ = module
        return obj

    return deco
