#!/usr/bin/env python3
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Density matrices of localized basis sets, from k-space to real space"""
import setuptools

# This requires some name-mangling provided by 'package_dir' option
# Using namespace packages allows the tests to be shipped without
# __init__ files.
packages = setuptools.find_namespace_packages(where="src", include=["lcaodm*"])

metadata = dict(
    # Ensure the packages are being found in the correct locations
    package_dir={"": "src"},
    packages=packages,
)

if __name__ == "__main__":
    setuptools.setup(**metadata)
