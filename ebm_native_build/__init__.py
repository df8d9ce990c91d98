"""
ebm_native_build — build-matrix driver for the ebm_native shared library.

Compiles ebm_native for every (OS, architecture, build type) target of the
host platform and stages the artifacts for the Python binding.
"""

__version__ = "0.1.0"
PACKAGE_NAME = "ebm_native_build"
SCHEMA_VERSION = "0.1"
