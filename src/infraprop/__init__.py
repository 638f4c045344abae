"""
infraprop: property-based verification for Terraform modules.

Generates randomized-but-valid module inputs, plans them with the Terraform
CLI against a mock provider, and checks structural invariants over the
resulting plan graph.
"""

__version__ = "0.1.0"
