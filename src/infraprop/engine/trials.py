# src/infraprop/engine/trials.py
"""Trial loop: generate -> plan -> check, repeated over seeded random inputs.

Reproducibility: a master random.Random(seed) derives one 64-bit seed per
trial before any trial runs, and each trial draws its config from its own
random.Random(trial_seed). A failing trial is therefore reproduced by its
trial seed alone, independent of worker count or completion order.

Trials share nothing mutable. With workers > 1 they run on a thread pool
(each Terraform call is a subprocess, so threads spend their time waiting);
after the first failing trial completes, trials that have not started yet
are cancelled. The report always names the lowest-index failure observed.
"""

from __future__ import annotations

import random
import secrets
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any

from infraprop.contracts.configs import GeneratedConfig
from infraprop.contracts.enums import ReportStatus
from infraprop.contracts.errors import ExecutionError, HarnessError
from infraprop.contracts.protocols import PlanRunner
from infraprop.contracts.results import PropertyReport, Result, TrialError, TrialFailure, TrialOutcome
from infraprop.core.logging import get_logger
from infraprop.engine.suites import PropertySuite
from infraprop.generation import draw
from infraprop.invariants import check_all, compare_plans

logger = get_logger(__name__)

DEFAULT_TRIALS = 100


def derive_trial_seeds(seed: int, trials: int) -> list[int]:
    """Per-trial seeds for a property run, fixed by the master seed."""
    master = random.Random(seed)
    return [master.getrandbits(64) for _ in range(trials)]


def run_trial(suite: PropertySuite, index: int, trial_seed: int, runner: PlanRunner) -> TrialOutcome:
    """Run one trial of a suite.

    Harness errors (render, execution, parse) become an errored outcome and
    never a violation. Any other exception is a harness bug and propagates.
    """
    config = draw(suite.module, random.Random(trial_seed), **suite.pins)
    try:
        plan = runner.plan(config)
        results: list[Result] = list(check_all(suite.invariants, config, plan))
        if suite.replay:
            results.append(compare_plans(plan, runner.plan(config)))
    except HarnessError as e:
        return TrialOutcome(index, trial_seed, config, error=_trial_error(index, trial_seed, config, e))
    return TrialOutcome(index, trial_seed, config, tuple(results))


def _trial_error(index: int, trial_seed: int, config: GeneratedConfig, error: HarnessError) -> TrialError:
    if isinstance(error, ExecutionError):
        return TrialError(
            trial_index=index,
            trial_seed=trial_seed,
            config=config,
            error_type=type(error).__name__,
            message=str(error),
            stage=error.stage,
            diagnostics=error.diagnostics,
            timed_out=error.timed_out,
        )
    return TrialError(
        trial_index=index,
        trial_seed=trial_seed,
        config=config,
        error_type=type(error).__name__,
        message=str(error),
    )


def run_property(
    suite: PropertySuite,
    runner: PlanRunner,
    *,
    trials: int = DEFAULT_TRIALS,
    seed: int | None = None,
    workers: int = 1,
) -> PropertyReport:
    """Check a property over `trials` generated configurations.

    Args:
        suite: The property to check
        runner: Turns a config into a plan (TerraformPipeline in production)
        trials: Number of trials; stops early at the first failure
        seed: Master seed; None draws a fresh one, recorded in the report
        workers: Number of trials in flight at once

    Raises:
        ValueError: If trials or workers is less than 1
    """
    if trials < 1:
        raise ValueError(f"trials must be >= 1, got {trials}")
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    if seed is None:
        seed = secrets.randbits(63)

    log = logger.bind(suite=suite.name, module=suite.module.value, seed=seed)
    log.info("property_started", trials=trials, workers=workers)
    start = time.perf_counter()

    seeds = derive_trial_seeds(seed, trials)
    if workers == 1:
        outcomes = _run_sequential(suite, runner, seeds)
    else:
        outcomes = _run_parallel(suite, runner, seeds, workers)

    failed = min((o for o in outcomes if not o.passed), key=lambda o: o.trial_index, default=None)
    elapsed = time.perf_counter() - start
    report = _build_report(suite, seed, trials, len(outcomes), failed, elapsed)

    if failed is None:
        log.info("property_passed", trials_run=report.trials_run, elapsed_seconds=round(elapsed, 3))
    elif report.failure is not None:
        log.warning(
            "property_violated",
            trial_index=failed.trial_index,
            trial_seed=failed.trial_seed,
            invariant=report.failure.violation.invariant,
            clause=report.failure.violation.clause,
        )
    elif report.error is not None:
        log.warning(
            "property_errored",
            trial_index=failed.trial_index,
            trial_seed=failed.trial_seed,
            error_type=report.error.error_type,
            stage=report.error.stage.value if report.error.stage is not None else None,
        )
    return report


def _run_sequential(suite: PropertySuite, runner: PlanRunner, seeds: list[int]) -> list[TrialOutcome]:
    outcomes: list[TrialOutcome] = []
    for index, trial_seed in enumerate(seeds):
        outcome = run_trial(suite, index, trial_seed, runner)
        outcomes.append(outcome)
        if not outcome.passed:
            break
    return outcomes


def _run_parallel(suite: PropertySuite, runner: PlanRunner, seeds: list[int], workers: int) -> list[TrialOutcome]:
    outcomes: list[TrialOutcome] = []
    stop = threading.Event()

    def guarded(index: int, trial_seed: int) -> TrialOutcome | None:
        # Queued trials that start after a failure skip their work
        if stop.is_set():
            return None
        return run_trial(suite, index, trial_seed, runner)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"infraprop-{suite.name}") as pool:
        futures: list[Future[TrialOutcome | None]] = [
            pool.submit(guarded, index, trial_seed) for index, trial_seed in enumerate(seeds)
        ]
        try:
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                outcome = future.result()
                if outcome is None:
                    continue
                outcomes.append(outcome)
                if not outcome.passed and not stop.is_set():
                    stop.set()
                    for pending in futures:
                        pending.cancel()
        except BaseException:
            stop.set()
            for pending in futures:
                pending.cancel()
            raise

    outcomes.sort(key=lambda o: o.trial_index)
    return outcomes


def _build_report(
    suite: PropertySuite,
    seed: int,
    trials: int,
    trials_run: int,
    failed: TrialOutcome | None,
    elapsed: float,
) -> PropertyReport:
    common: dict[str, Any] = {
        "suite": suite.name,
        "module": suite.module,
        "seed": seed,
        "trials_requested": trials,
        "trials_run": trials_run,
        "elapsed_seconds": elapsed,
    }
    if failed is None:
        return PropertyReport(status=ReportStatus.PASSED, **common)
    if failed.error is not None:
        return PropertyReport(status=ReportStatus.ERRORED, error=failed.error, **common)
    violation = failed.violation
    assert violation is not None and failed.config is not None
    return PropertyReport(
        status=ReportStatus.VIOLATED,
        failure=TrialFailure(failed.trial_index, failed.trial_seed, failed.config, violation),
        **common,
    )
