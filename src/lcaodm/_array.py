# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

from functools import partial as _partial

import numpy as np
from numpy import asarray, cumsum, float64, int32, int64, ones, take, zeros

__all__ = []


def _append(name, suffix="ilfd"):
    return [name + s for s in suffix]


def array_arange(start, end=None, n=None, dtype=int64):
    """Creates a single array from a sequence of `numpy.arange`

    Parameters
    ----------
    start : array_like
       a list of start elements for `numpy.arange`
    end : array_like
       a list of end elements (exclusive) for `numpy.arange`.
       This argument is not used if `n` is passed.
    n : array_like
       a list of counts of elements for `numpy.arange`.
       This is equivalent to ``end=start + n``.
    dtype : numpy.dtype
       the returned lists data-type

    Examples
    --------
    >>> array_arange([1, 5], [3, 6])
    array([1, 2, 5], dtype=int64)
    >>> array_arange([1, 6], n=[2, 2])
    array([1, 2, 6, 7], dtype=int64)
    """
    if n is None:
        n = asarray(end) - asarray(start)
    else:
        n = asarray(n)
    # The below algorithm only works for non-zero n
    idx = n.nonzero()[0]

    # Grab corner case
    if len(idx) == 0:
        return zeros(0, dtype=dtype)

    # Reduce size
    start = take(start, idx)
    n = take(n, idx)

    # Create array of 1's.
    # The 1's are important when issuing the cumultative sum
    a = ones(n.sum(), dtype=dtype)

    # set pointers such that we can
    # correct for final cumsum
    ptr = cumsum(n[:-1])
    a[0] = start[0]
    # Define start and correct for previous values
    a[ptr] = start[1:] - start[:-1] - n[:-1] + 1

    return cumsum(a, dtype=dtype)


__all__ += ["array_arange"]

zerosi = _partial(np.zeros, dtype=int32)
zerosd = _partial(np.zeros, dtype=float64)
__all__ += _append("zeros", "id")

onesi = _partial(np.ones, dtype=int32)
onesd = _partial(np.ones, dtype=float64)
__all__ += _append("ones", "id")

emptyd = _partial(np.empty, dtype=float64)
__all__ += ["emptyd"]

fulli = _partial(np.full, dtype=int32)
fulld = _partial(np.full, dtype=float64)
__all__ += _append("full", "id")

arrayi = _partial(np.array, dtype=int32)
arrayd = _partial(np.array, dtype=float64)
__all__ += _append("array", "id")

asarrayi = _partial(np.asarray, dtype=int32)
asarrayd = _partial(np.asarray, dtype=float64)
__all__ += _append("asarray", "id")

arangei = _partial(np.arange, dtype=int32)
aranged = _partial(np.arange, dtype=float64)
__all__ += _append("arange", "id")

cumsumi = _partial(np.cumsum, dtype=int32)
__all__ += ["cumsumi"]
