# tests/fixtures/__init__.py
"""Shared test doubles for infraprop tests.

Available helpers:
- plans: simulated `terraform show -json` documents and SimulatedRunner
- terraform: FakeTerraform, a recording stand-in for subprocess.run
"""

from tests.fixtures.plans import SimulatedRunner, simulated_document, simulated_plan
from tests.fixtures.terraform import FakeTerraform

__all__ = [
    "FakeTerraform",
    "SimulatedRunner",
    "simulated_document",
    "simulated_plan",
]
