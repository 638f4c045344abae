"""Property engine: suites and the seeded trial loop."""

from infraprop.engine.suites import BUILTIN_SUITES, PropertySuite, get_suite
from infraprop.engine.trials import DEFAULT_TRIALS, derive_trial_seeds, run_property, run_trial

__all__ = [
    "BUILTIN_SUITES",
    "DEFAULT_TRIALS",
    "PropertySuite",
    "derive_trial_seeds",
    "get_suite",
    "run_property",
    "run_trial",
]
