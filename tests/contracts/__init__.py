"""Tests for the contracts package: attribute values, configs, errors and results."""
