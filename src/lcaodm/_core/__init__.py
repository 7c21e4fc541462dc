# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

"""
Core functionality exposed here.
"""
# isort: off
from .atom import *
from .lattice import *
from .geometry import *
from .parallel import *
from .neighbors import *
from .sparse_block import *

# isort: on
