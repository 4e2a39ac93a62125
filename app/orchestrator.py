# app/orchestrator.py
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from adaptation.engine import (
    classify_emotional_state,
    generate_insights,
    recommend_environment,
    recommend_meditation,
    recommend_session,
    target_energy_type,
    top_insights,
)
from adaptation.score import AdaptationScoreTracker, calculate_adaptation_score
from common.types import AdaptationResult, SensorSnapshot, snapshot_from_dict, to_dict
from config.settings import SETTINGS
from meditation.catalog import MeditationCatalog, NoMatchError, describe_meditation, load_catalog
from utils.logging import get_logger

# Prometheus metrics
from utils.metrics import (
    init_metrics,
    timeit,
    evaluation_latency,
    evaluations_total,
    evaluation_errors_total,
    catalog_mismatch_total,
    emotional_state_total,
    insights_emitted_total,
    adaptation_score_gauge,
    biometric_score_gauge,
    inc_counter,
    set_gauge,
)

logger = get_logger("adaptation")


@lru_cache(maxsize=4)
def get_catalog(path: Optional[str] = None) -> MeditationCatalog:
    """Catalog loaded once per path and shared read-only by every caller."""
    return load_catalog(path or SETTINGS.catalog.path)


def run_adaptation(
    snapshot: Union[SensorSnapshot, Mapping[str, Any]],
    *,
    catalog: Optional[MeditationCatalog] = None,
    tracker: Optional[AdaptationScoreTracker] = None,
    rng: Optional[np.random.Generator] = None,
    run_id: Optional[str] = None,
    metrics_port: Optional[int] = None,
    insight_limit: Optional[int] = None,
) -> AdaptationResult:
    """
    One adaptation cycle over a sensor snapshot.

    - ``snapshot`` may be a SensorSnapshot or the host's JSON mapping.
    - ``tracker`` is the caller-owned running score; without one a fresh tracker
      starts from the configured initial value.
    - ``rng`` drives the meditation pick (and a fresh tracker's walk).
    - If metrics_port is provided, exposes /metrics on that port.

    NoMatchError from the meditation pick propagates to the caller.
    """
    if metrics_port is not None:
        init_metrics(metrics_port)
    if run_id is None:
        run_id = SETTINGS.run_id
    metrics_labels = {"run_id": run_id}
    limit = SETTINGS.insights.display_limit if insight_limit is None else insight_limit

    if not isinstance(snapshot, SensorSnapshot):
        snapshot = snapshot_from_dict(snapshot)

    logger.info("cycle:start", extra={"extra_fields": {"run_id": run_id}})
    try:
        with timeit(evaluation_latency, metrics_labels):
            catalog = catalog if catalog is not None else get_catalog()
            if tracker is None:
                tracker = AdaptationScoreTracker(rng=rng)

            state = classify_emotional_state(snapshot)
            environment = recommend_environment(snapshot)
            insights = generate_insights(snapshot)
            session = recommend_session(snapshot)
            try:
                meditation = recommend_meditation(snapshot, catalog, rng=rng)
            except NoMatchError as exc:
                inc_counter(catalog_mismatch_total, {"energy_type": exc.energy_type, **metrics_labels})
                logger.warning("meditation:no_match", extra={"extra_fields": {
                    "run_id": run_id,
                    "energy_type": exc.energy_type,
                    "catalog_size": len(catalog),
                }})
                raise
            biometric_score = calculate_adaptation_score(snapshot)
            adaptation_score = tracker.update()

        inc_counter(evaluations_total, metrics_labels)
        inc_counter(emotional_state_total, {"state": state, **metrics_labels})
        for insight in insights:
            inc_counter(insights_emitted_total, {"type": insight.type, **metrics_labels})
        set_gauge(adaptation_score_gauge, metrics_labels, adaptation_score)
        set_gauge(biometric_score_gauge, metrics_labels, biometric_score)

        logger.info("cycle:done", extra={"extra_fields": {
            "run_id": run_id,
            "emotional_state": state,
            "environment": to_dict(environment),
            "insight_count": len(insights),
            "meditation_id": meditation.id,
            "energy_type": target_energy_type(snapshot),
            "biometric_score": biometric_score,
            "adaptation_score": adaptation_score,
        }})

        return AdaptationResult(
            run_id=run_id,
            emotional_state=state,
            environment=environment,
            insights=insights,
            top_insights=top_insights(insights, limit),
            session_recommendation=session,
            meditation=meditation,
            meditation_suggestion=describe_meditation(meditation),
            biometric_score=biometric_score,
            adaptation_score=adaptation_score,
        )
    except Exception as e:
        try:
            inc_counter(evaluation_errors_total, metrics_labels, 1.0)
        except Exception:
            logger.exception("failed to inc evaluation_errors_total")
        logger.error("cycle:error", extra={"extra_fields": {"run_id": run_id, "error": str(e)}})
        raise


def result_to_dict(result: AdaptationResult) -> Dict[str, Any]:
    """JSON-ready view of a cycle result (tuples become lists)."""
    return to_dict(result)
