"""Test helper utilities for the Sentinel content deployer."""

from .fake_arm import FakeManagementApi, make_package, make_solution, make_template

__all__ = [
    "FakeManagementApi",
    "make_package",
    "make_solution",
    "make_template",
]
