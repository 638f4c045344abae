# tests/property/__init__.py
"""Property-based tests for infraprop.

Hypothesis drives the harness's own building blocks over generated inputs:
the generator always yields valid configs, rendering is always parseable
HCL, and a correct module plan satisfies every invariant.
"""
