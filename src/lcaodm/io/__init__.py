# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

"""
Input/Output
------------

Available files for reading/writing

General file retrieval is done through the file extensions

  >>> get_sile("SPIN1_0.dmk")

will automatically recognize the `dmkSile`.


Basic IO methods/classes
------------------------

  add_sile - add a file to the list of files that lcaodm can interact with
  get_sile - retrieve a file object via a file name by comparing the extension
  SileError - lcaodm specific error


Density matrix files
--------------------

  dmkSile - density matrix at a single k-point


Low level methods/classes
-------------------------

  get_siles - retrieve all registered files
  get_sile_class - retrieve class via a file name by comparing the extension
  BaseSile - the base class for all lcaodm files
  Sile - a base class for ASCII files
"""
from ._exceptions import *
from .sile import *

# isort: split

from .dmk import *
