# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

import os
from collections.abc import Callable
from contextlib import contextmanager
from pathlib import Path
from typing import Any

__all__ = ["register_environ_variable", "get_environ_variable", "lcaodm_environ"]


# Local variable for retaining the variables, may be used for
# extroversion
LCAODM_ENVIRON = {}


@contextmanager
def lcaodm_environ(**environ):
    r"""Create a new context for temporary overwriting the lcaodm environment variables

    Parameters
    ----------
    environ : dict, optional
        the temporary environment variables that should be used in this context
    """
    global LCAODM_ENVIRON
    old = {}
    for key, value in environ.items():
        old[key] = LCAODM_ENVIRON[key]["value"]
        LCAODM_ENVIRON[key]["value"] = value
    try:
        yield  # nothing to yield
    finally:
        for key in environ:
            LCAODM_ENVIRON[key]["value"] = old[key]


def register_environ_variable(
    name: str,
    default: Any,
    description: str = None,
    process: Callable[[Any], Any] = None,
):
    """Register a new global lcaodm environment variable.

    Parameters
    -----------
    name: str or list-like of str
        the name of the environment variable. Needs to
        be correctly prefixed with "LCAODM_".
    default: any, optional
        the default value for this environment variable
    description: str, optional
        a description of what this variable does.
    process : callable, optional
        a callable which will be used to post-process the value when retrieving
        it.

    Raises
    ------
    ValueError
       if `name` does not start with "LCAODM_"
    """
    if not name.startswith("LCAODM_"):
        raise ValueError(
            "register_environ_variable: name should start with 'LCAODM_'"
        )

    if process is None:

        def process(arg):
            return arg

    global LCAODM_ENVIRON

    if name in LCAODM_ENVIRON:
        raise NameError(f"register_environ_variable: name {name} already registered")

    LCAODM_ENVIRON[name] = {
        "default": default,
        "description": description,
        "process": process,
        "value": os.environ.get(name, default),
    }


def get_environ_variable(name: str):
    """Gets the value of a registered environment variable.

    Parameters
    -----------
    name: str
        the name of the environment variable.
    """
    variable = LCAODM_ENVIRON[name]
    return variable["process"](variable["value"])


def _abs_path(path: str):
    path = Path(path)
    return path.resolve()


def _bool(val):
    if isinstance(val, bool):
        return val
    return bool(val) and str(val).lower().strip() in ("1", "t", "true", "yes")


def _mismatch_policy(val: str):
    val = str(val).lower().strip()
    if val not in ("warn", "raise"):
        raise ValueError(
            f"LCAODM_DIM_MISMATCH must be one of [warn, raise], got {val!r}"
        )
    return val


register_environ_variable(
    "LCAODM_LOG_FILE",
    "",
    "Log file to write into. If empty, do not log.",
    process=_abs_path,
)

register_environ_variable(
    "LCAODM_LOG_LEVEL",
    "INFO",
    "Define the log level used when writing to the file. Should be importable from logging module.",
    lambda x: x.upper(),
)

register_environ_variable(
    "LCAODM_VALIDATE",
    "false",
    "Whether index ranges and structural pre-conditions are checked. "
    "Disabled by default since the checks sit inside the hot loops.",
    process=_bool,
)

register_environ_variable(
    "LCAODM_DIM_MISMATCH",
    "warn",
    "What to do when a density matrix snapshot does not match the in-memory "
    "dimensions, one of [warn, raise].",
    process=_mismatch_policy,
)
