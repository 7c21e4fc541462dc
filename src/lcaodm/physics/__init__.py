# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

"""
Physical objects
================

The density matrix of a localized basis in k-space and in real space.

Brillouin zone
==============

   BrillouinZone - k-points of a calculation


Spin configuration
==================

   Spin - spin configuration


Physical quantites
==================

   DensityMatrix
"""
from .brillouinzone import *
from .spin import *

# isort: split

from .densitymatrix import *
