"""Challenge evaluator: score an attempt's analytics against the baseline.

Pure comparison; the only I/O is the optional baseline lookup in
``evaluate_with_store``. A missing baseline is an error, never an implicit
fail.
"""

import logging

from tripbench.engine.gameplay_rules import objective_for
from tripbench.engine.generator import WEEKDAY_SCENARIO
from tripbench.errors import BaselineNotComputedError, MetricUnavailableError
from tripbench.models.analytics import Analytics, Verdict
from tripbench.models.gameplay import Challenge, GameplayKind
from tripbench.stores.analytics import AnalyticsStore

logger = logging.getLogger(__name__)


def evaluate(
    challenge: Challenge, baseline: Analytics | None, attempt: Analytics
) -> Verdict:
    """Compare ``attempt`` with ``baseline`` under the challenge's objective.

    Raises:
        NoObjectiveError: If the challenge's mode has nothing to score.
        BaselineNotComputedError: If ``baseline`` is None.
        MetricUnavailableError: If either record has no data for the metric.
    """
    objective = objective_for(challenge.gameplay)
    if baseline is None:
        raise BaselineNotComputedError(challenge.map_name, baseline_scenario_name(challenge))

    baseline_value = objective.measure(baseline)
    attempt_value = objective.measure(attempt)
    if baseline_value is None or attempt_value is None:
        which = "baseline" if baseline_value is None else "attempt"
        msg = f"Cannot compute {objective.metric} for the {which} of {challenge.alias}"
        raise MetricUnavailableError(msg)

    margin = objective.margin(baseline_value, attempt_value)
    verdict = Verdict(
        passed=margin >= objective.threshold,
        margin=margin,
        threshold=objective.threshold,
        metric=objective.metric,
        baseline_value=baseline_value,
        attempt_value=attempt_value,
    )
    logger.info(
        "Evaluated %s: %s %s -> %s, margin %s (need %s): %s",
        challenge.alias, objective.metric, baseline_value, attempt_value,
        margin, objective.threshold, "PASS" if verdict.passed else "FAIL",
    )
    return verdict


def baseline_scenario_name(challenge: Challenge) -> str:
    """Name of the scenario whose prebaked analytics score this challenge."""
    gameplay = challenge.gameplay
    if gameplay.kind == GameplayKind.PLAY_SCENARIO and gameplay.scenario_name:
        return gameplay.scenario_name
    return WEEKDAY_SCENARIO


def evaluate_with_store(
    challenge: Challenge, attempt: Analytics, analytics_store: AnalyticsStore
) -> Verdict:
    """Like ``evaluate``, with the baseline read from ``analytics_store``."""
    baseline = analytics_store.load(challenge.map_name, baseline_scenario_name(challenge))
    return evaluate(challenge, baseline, attempt)
