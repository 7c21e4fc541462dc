# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# isort: skip_file
from __future__ import annotations

"""
lcaodm
======

lcaodm holds the density matrix of periodic electronic structure calculations
in a localized (atom-centered) basis, and transforms it from the dense
k-space form to the sparse real space form.

Generic classes
===============

   Atom
   Atoms
   Geometry
   Lattice
   ParallelOrbitals
   NeighborList

Sparse storage
==============

   BaseMatrix
   AtomPair
   SparseBlockMatrix
"""
import logging

# instantiate the logger, but we will not use it here...
logging.getLogger(__name__)

__author__ = "lcaodm developers"
__license__ = "MPL-2.0"

import lcaodm._version as _version

__version__ = _version.version
__version_tuple__ = _version.version_tuple

# do not expose this helper package
del _version

from lcaodm._environ import get_environ_variable

# Immediately check if the file is logable
log_file = get_environ_variable("LCAODM_LOG_FILE")
if not log_file.is_dir():
    # Create the logging
    log_lvl = get_environ_variable("LCAODM_LOG_LEVEL")

    # Start the logging to the file
    logging.basicConfig(filename=str(log_file), level=getattr(logging, log_lvl))
    del log_lvl
del log_file

from ._core import *

# Import warning classes
# We currently do not import warn and info
# as they are too generic names in case one does from lcaodm import *
from .messages import LcaoDMException, LcaoDMWarning, LcaoDMInfo, LcaoDMError
from .messages import (
    InvalidConfigError,
    OwnershipViolation,
    ValidationError,
    DimensionMismatchError,
    DimensionMismatchWarning,
    MissingSnapshotInfo,
)

# Physical quantities and required classes
from .physics import *

# The io files requires imports from the above modules
# Hence, we *must* import it last.
from .io.sile import (
    add_sile,
    get_sile_class,
    get_sile,
    get_siles,
    BaseSile,
    Sile,
)
from .io import SileError
