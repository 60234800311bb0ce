"""Trend analysis over a tracked URL's performance history.

For each look-back window the engine reads the date-bounded slice of
history, decides the overall direction and strength of the series, flags
significant per-metric changes, runs a set of independent insight
heuristics and derives prioritized recommendations. The result replaces the
stored analysis for the (tracking, period) pair.
"""

import logging
import math
import statistics
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta
from itertools import combinations
from typing import Callable, Optional, Union

from seo_audit.constants import (
    TREND_PARAMS,
    PERIOD_DAYS,
    TREND_DIRECTION_THRESHOLD,
    STRONG_TREND_SCORE,
    MODERATE_TREND_SCORE,
    MAGNITUDE_SCALE,
    SIGNIFICANCE_SAMPLE_SIZE,
    MODERATE_CHANGE_MULTIPLIER,
    MAJOR_CHANGE_MULTIPLIER,
    CONFIDENCE_WEIGHTS,
    FRESHNESS_STEPS,
    STALE_FRESHNESS_SCORE,
    INSUFFICIENT_DATA_CONFIDENCE,
    CORRELATION_THRESHOLD,
    STRONG_CORRELATION,
    VOLATILITY_MULTIPLIER,
    VOLATILE_THRESHOLD,
    STABILITY_MIN_POINTS,
    PLATEAU_MIN_POINTS,
    MAX_TREND_RECOMMENDATIONS,
    RECOMMENDATION_PRIORITY_ORDER,
    HISTORY_METRICS,
    CATEGORY_METRICS,
    METRIC_LABELS,
    EFFORT_BY_METRIC,
)
from seo_audit.models import (
    ChangeMagnitude,
    ChangeType,
    HistoricalRecommendation,
    PerformanceHistoryRecord,
    SignificantChange,
    TimePeriod,
    TrendAnalysis,
    TrendDirection,
    TrendInsight,
    TrendStrength,
    utc_now,
)
from seo_audit.repository import AbstractRepository
from seo_audit.utils import clamp_score, round_to

logger = logging.getLogger(__name__)

History = list[PerformanceHistoryRecord]

POSSIBLE_CAUSES = {
    "overall": {
        ChangeType.IMPROVEMENT: [
            "Comprehensive optimization efforts",
            "Multiple metric improvements",
            "Strategic performance initiatives",
        ],
        ChangeType.REGRESSION: [
            "Multiple simultaneous issues",
            "Technical debt accumulation",
            "Resource constraints",
        ],
    },
    "seo": {
        ChangeType.IMPROVEMENT: [
            "Meta tag optimization",
            "Content structure improvements",
            "Technical SEO enhancements",
        ],
        ChangeType.REGRESSION: [
            "Content quality issues",
            "Technical SEO problems",
            "Crawling or indexing issues",
        ],
    },
    "accessibility": {
        ChangeType.IMPROVEMENT: [
            "WCAG compliance improvements",
            "Screen reader optimizations",
            "Keyboard navigation enhancements",
        ],
        ChangeType.REGRESSION: [
            "New accessibility barriers",
            "Missing alt texts or labels",
            "Color contrast issues",
        ],
    },
    "mobile": {
        ChangeType.IMPROVEMENT: [
            "Responsive design improvements",
            "Mobile-specific optimizations",
            "Touch interaction enhancements",
        ],
        ChangeType.REGRESSION: [
            "Mobile layout issues",
            "Touch target problems",
            "Mobile performance degradation",
        ],
    },
    "performance": {
        ChangeType.IMPROVEMENT: [
            "Code optimization",
            "Caching improvements",
            "Resource compression",
        ],
        ChangeType.REGRESSION: [
            "Increased payload size",
            "Third-party script issues",
            "Server performance problems",
        ],
    },
}


# =============================================================================
# Series helpers
# =============================================================================

def period_window(period: TimePeriod, now: datetime) -> tuple[datetime, datetime]:
    """Start and end of a look-back window ending at now.

    The one-year window goes back one calendar year; on Feb 29 it starts
    on Feb 28 of the previous year.
    """
    period = TimePeriod(period)
    if period == TimePeriod.ONE_YEAR:
        try:
            start = now.replace(year=now.year - 1)
        except ValueError:
            start = now.replace(year=now.year - 1, day=28)
    else:
        start = now - timedelta(days=PERIOD_DAYS[period.value])
    return start, now


def _sorted(history: History) -> History:
    return sorted(history, key=lambda r: r.recorded_at)


def consecutive_changes(history: History) -> list[int]:
    """Overall-score deltas between neighbouring history points."""
    ordered = _sorted(history)
    return [
        ordered[i].overall_score - ordered[i - 1].overall_score
        for i in range(1, len(ordered))
    ]


def average_scores(history: History) -> dict[str, Optional[float]]:
    """Mean of each tracked metric, ignoring missing values.

    A metric with no values in the slice averages to None.
    """
    averages = {}
    for metric in HISTORY_METRICS:
        values = [r.metric(metric) for r in history if r.metric(metric) is not None]
        averages[metric] = sum(values) / len(values) if values else None
    return averages


def volatility_score(history: History) -> float:
    """Twice the mean absolute consecutive change; 0 below three points."""
    if len(history) < 3:
        return 0.0
    changes = consecutive_changes(history)
    return sum(abs(c) for c in changes) / len(changes) * VOLATILITY_MULTIPLIER


def pearson(x: list[float], y: list[float]) -> float:
    """Pearson correlation, or 0 when it is undefined for the inputs."""
    if len(x) != len(y) or len(x) < 2:
        return 0.0
    try:
        return statistics.correlation(x, y)
    except statistics.StatisticsError:
        # A constant series has no defined correlation
        return 0.0


def metric_correlations(history: History) -> dict[str, float]:
    """Correlation of every pair of category metrics populated at every point."""
    populated = [
        metric for metric in CATEGORY_METRICS
        if all(r.metric(metric) is not None for r in history)
    ]
    correlations = {}
    for first, second in combinations(populated, 2):
        label = f"{METRIC_LABELS[first]}-{METRIC_LABELS[second]}"
        correlations[label] = pearson(
            [r.metric(first) for r in history],
            [r.metric(second) for r in history],
        )
    return correlations


def long_term_trend(history: History) -> str:
    """Classify the first-quarter vs last-quarter movement of a long series.

    Returns:
        One of 'plateauing', 'improving', 'declining' or 'stable'
    """
    if len(history) < PLATEAU_MIN_POINTS:
        return "stable"

    ordered = _sorted(history)
    quarter = len(ordered) // 4
    first_quarter = ordered[:quarter]
    last_quarter = ordered[-quarter:]

    change = average_scores(last_quarter)["overall"] - average_scores(first_quarter)["overall"]
    if abs(change) < 3 and volatility_score(last_quarter) < 5:
        return "plateauing"
    if change >= TREND_DIRECTION_THRESHOLD:
        return "improving"
    if change <= -TREND_DIRECTION_THRESHOLD:
        return "declining"
    return "stable"


def _number(value: float) -> str:
    """Render a 2-decimal value without trailing zeros (30, 12.5, 3.33)."""
    return f"{round_to(value, 2):g}"


# =============================================================================
# Direction, strength and significant changes
# =============================================================================

def detect_overall_trend(history: History) -> TrendDirection:
    """Compare the average overall score of the later half with the earlier half.

    With an odd number of points the middle one belongs to neither half.
    """
    if len(history) < 2:
        return TrendDirection.STABLE

    ordered = _sorted(history)
    recent = ordered[math.ceil(len(ordered) / 2):]
    earlier = ordered[:len(ordered) // 2]

    change = average_scores(recent)["overall"] - average_scores(earlier)["overall"]
    if change >= TREND_DIRECTION_THRESHOLD:
        return TrendDirection.IMPROVING
    if change <= -TREND_DIRECTION_THRESHOLD:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def trend_strength(history: History, trend: TrendDirection) -> TrendStrength:
    """Blend of direction consistency and average step size."""
    if trend == TrendDirection.STABLE:
        return TrendStrength.WEAK

    changes = consecutive_changes(history)
    if not changes:
        return TrendStrength.WEAK

    sign = 1 if trend == TrendDirection.IMPROVING else -1
    consistency = sum(1 for c in changes if c * sign > 0) / len(changes) * 100
    magnitude = min(100.0, sum(abs(c) for c in changes) / len(changes) * MAGNITUDE_SCALE)

    strength = (consistency + magnitude) / 2
    if strength >= STRONG_TREND_SCORE:
        return TrendStrength.STRONG
    if strength >= MODERATE_TREND_SCORE:
        return TrendStrength.MODERATE
    return TrendStrength.WEAK


def classify_magnitude(change: float, threshold: float) -> ChangeMagnitude:
    if change >= threshold * MAJOR_CHANGE_MULTIPLIER:
        return ChangeMagnitude.MAJOR
    if change >= threshold * MODERATE_CHANGE_MULTIPLIER:
        return ChangeMagnitude.MODERATE
    return ChangeMagnitude.MINOR


def significant_changes(
    history: History, threshold: float
) -> tuple[list[SignificantChange], list[SignificantChange]]:
    """Metrics whose recent average moved at least threshold points from the baseline.

    The baseline is the mean of the earliest points in the window and the
    recent value the mean of the latest points (up to five each).

    Args:
        history: History points of the window
        threshold: Period-specific significance threshold in score points

    Returns:
        Tuple of (improvements, regressions)
    """
    if len(history) < 2:
        return [], []

    ordered = _sorted(history)
    recent = average_scores(ordered[-SIGNIFICANCE_SAMPLE_SIZE:])
    baseline = average_scores(ordered[:SIGNIFICANCE_SAMPLE_SIZE])

    improvements = []
    regressions = []
    for metric in HISTORY_METRICS:
        if recent[metric] is None or baseline[metric] is None:
            continue

        change = recent[metric] - baseline[metric]
        percentage = change / baseline[metric] * 100 if baseline[metric] > 0 else 0.0
        name = METRIC_LABELS[metric]

        if change >= threshold:
            improvements.append(SignificantChange(
                category=metric,
                type=ChangeType.IMPROVEMENT,
                magnitude=classify_magnitude(abs(change), threshold),
                score_change=round_to(change),
                percentage_change=round_to(percentage),
                description=f"{name} improved by {_number(change)} points ({_number(percentage)}%)",
                impact=f"Positive change in {name} performance indicates successful optimization efforts",
                possible_causes=list(POSSIBLE_CAUSES[metric][ChangeType.IMPROVEMENT]),
            ))
        elif change <= -threshold:
            regressions.append(SignificantChange(
                category=metric,
                type=ChangeType.REGRESSION,
                magnitude=classify_magnitude(abs(change), threshold),
                score_change=round_to(change),
                percentage_change=round_to(percentage),
                description=(
                    f"{name} declined by {_number(abs(change))} points "
                    f"({_number(abs(percentage))}%)"
                ),
                impact=f"Negative change in {name} performance requires attention and optimization",
                possible_causes=list(POSSIBLE_CAUSES[metric][ChangeType.REGRESSION]),
            ))

    return improvements, regressions


# =============================================================================
# Insight heuristics (each returns at most one finding)
# =============================================================================

def velocity_insight(history: History, period: str) -> Optional[TrendInsight]:
    if len(history) < 3:
        return None

    recent_changes = consecutive_changes(history)[-3:]
    average = sum(recent_changes) / len(recent_changes)
    if abs(average) < 2:
        return None

    velocity = "accelerating" if average > 0 else "decelerating"
    if abs(average) >= 5:
        impact = "high"
    elif abs(average) >= 3:
        impact = "medium"
    else:
        impact = "low"

    return TrendInsight(
        type="pattern",
        category="overall",
        title="Performance Velocity Analysis",
        description=(
            f"Website performance is {velocity} with an average change of "
            f"{average:.1f} points per audit over the {period} period"
        ),
        impact=impact,
        timeframe=period,
        confidence=min(100, len(recent_changes) * 25),
        data_support=[
            f"{len(recent_changes)} recent audit data points",
            f"Average change: {average:.1f} points",
        ],
    )


def consistency_insight(history: History) -> Optional[TrendInsight]:
    if len(history) < 5:
        return None

    deviation = statistics.pstdev([r.overall_score for r in history])
    if deviation <= 5:
        level, impact = "highly consistent", "low"
    elif deviation <= 10:
        level, impact = "moderately consistent", "medium"
    else:
        level, impact = "highly variable", "high"

    return TrendInsight(
        type="pattern",
        category="overall",
        title="Performance Consistency Assessment",
        description=(
            f"Performance scores show {level} patterns with a standard "
            f"deviation of {deviation:.1f} points"
        ),
        impact=impact,
        timeframe="overall-period",
        confidence=min(100, len(history) * 10),
        data_support=[
            f"{len(history)} performance data points",
            f"Standard deviation: {deviation:.1f} points",
        ],
    )


def correlation_insight(history: History) -> Optional[TrendInsight]:
    """Report the strongest correlation between two category metrics."""
    if len(history) < 5:
        return None

    correlations = metric_correlations(history)
    if not correlations:
        return None

    label, value = max(correlations.items(), key=lambda item: abs(item[1]))
    if abs(value) < CORRELATION_THRESHOLD:
        return None

    relationship = "positive" if value > 0 else "negative"
    strength = "strong" if abs(value) >= STRONG_CORRELATION else "moderate"

    return TrendInsight(
        type="pattern",
        category="overall",
        title="Metric Correlation Analysis",
        description=(
            f"{label} shows a {strength} {relationship} correlation "
            f"({value * 100:.0f}%), indicating interdependent performance factors"
        ),
        impact="high" if abs(value) >= STRONG_CORRELATION else "medium",
        timeframe="historical-analysis",
        confidence=min(100, len(history) * 12),
        data_support=[
            f"Correlation coefficient: {value:.3f}",
            f"Analysis of {len(history)} data points",
        ],
    )


def recent_change_insight(history: History) -> Optional[TrendInsight]:
    if len(history) < 3:
        return None

    previous, latest = _sorted(history)[-2:]
    change = latest.overall_score - previous.overall_score
    if abs(change) < 3:
        return None

    direction = "improved" if change > 0 else "declined"
    if abs(change) >= 10:
        magnitude, impact = "significantly", "high"
    elif abs(change) >= 5:
        magnitude, impact = "moderately", "medium"
    else:
        magnitude, impact = "slightly", "low"

    return TrendInsight(
        type="improvement" if change > 0 else "regression",
        category="overall",
        title="Recent Performance Change",
        description=(
            f"Latest audit shows performance {magnitude} {direction} by "
            f"{abs(change):.1f} points compared to previous assessment"
        ),
        impact=impact,
        timeframe="latest-audit",
        confidence=95,
        data_support=["Latest two audit comparisons", f"Score change: {change:.1f} points"],
    )


def stability_insight(history: History) -> Optional[TrendInsight]:
    if len(history) < STABILITY_MIN_POINTS:
        return None

    volatility = volatility_score(history)
    if volatility <= 15:
        level, impact = "highly stable", "low"
    elif volatility <= VOLATILE_THRESHOLD:
        level, impact = "moderately stable", "medium"
    else:
        level, impact = "unstable", "high"
    outcome = "consistent" if volatility <= VOLATILE_THRESHOLD else "unpredictable"

    return TrendInsight(
        type="pattern",
        category="overall",
        title="Performance Stability Assessment",
        description=(
            f"Performance shows {level} patterns with a volatility score of "
            f"{volatility:.1f}%, indicating {outcome} optimization results"
        ),
        impact=impact,
        timeframe="historical-period",
        confidence=min(100, len(history) * 8),
        data_support=[
            f"{len(history)} historical data points",
            f"Volatility score: {volatility:.1f}%",
        ],
    )


def key_insights(history: History, period: str) -> list[TrendInsight]:
    """Run every insight heuristic and keep the findings."""
    candidates = (
        velocity_insight(history, period),
        consistency_insight(history),
        correlation_insight(history),
        recent_change_insight(history),
        stability_insight(history),
    )
    return [insight for insight in candidates if insight is not None]


# =============================================================================
# Recommendations and confidence
# =============================================================================

def build_recommendations(
    history: History,
    improvements: list[SignificantChange],
    regressions: list[SignificantChange],
) -> list[HistoricalRecommendation]:
    """Derive recommendations, most urgent first, capped at five."""
    recommendations = []

    for regression in regressions:
        if regression.magnitude != ChangeMagnitude.MAJOR:
            continue
        name = METRIC_LABELS[regression.category]
        recommendations.append(HistoricalRecommendation(
            priority="critical",
            category="trend-reversal",
            title=f"{name} Recovery Required",
            description=(
                f"Immediately investigate and address the "
                f"{abs(regression.score_change):.1f} point decline in {name} scores"
            ),
            expected_impact=f"Restore {name} performance to prevent further degradation",
            effort=EFFORT_BY_METRIC.get(regression.category, "medium"),
            timeframe="immediate",
            based_on=[f"High-impact regression in {name} performance"],
        ))

    for improvement in improvements:
        if improvement.magnitude != ChangeMagnitude.MAJOR:
            continue
        name = METRIC_LABELS[improvement.category]
        recommendations.append(HistoricalRecommendation(
            priority="medium",
            category="optimization",
            title=f"Scale {name} Success",
            description=(
                f"Scale the successful strategies that improved {name} by "
                f"{improvement.score_change:.1f} points"
            ),
            expected_impact="Apply proven optimization patterns to other performance areas",
            effort="low",
            timeframe="short-term",
            based_on=[f"Successful optimization in {name} performance"],
        ))

    if volatility_score(history) > VOLATILE_THRESHOLD:
        recommendations.append(HistoricalRecommendation(
            priority="high",
            category="optimization",
            title="Improve Performance Stability",
            description="Implement consistent optimization practices to reduce performance volatility",
            expected_impact="Achieve more predictable and stable website performance metrics",
            effort="medium",
            timeframe="short-term",
            based_on=["High performance volatility detected", "Inconsistent score patterns"],
        ))

    if long_term_trend(history) == "plateauing":
        recommendations.append(HistoricalRecommendation(
            priority="medium",
            category="optimization",
            title="Performance Innovation Strategy",
            description="Explore new optimization techniques to break through current performance plateau",
            expected_impact="Unlock the next level of website performance improvements",
            effort="high",
            timeframe="long-term",
            based_on=["Performance plateau pattern detected", "Long-term stagnation in improvements"],
        ))

    recommendations.sort(key=lambda r: RECOMMENDATION_PRIORITY_ORDER.index(r.priority))
    return recommendations[:MAX_TREND_RECOMMENDATIONS]


def data_freshness(history: History, now: datetime) -> int:
    """Step score of how recently the latest point was recorded."""
    if not history:
        return 0
    latest = max(r.recorded_at for r in history)
    days_since = (now - latest).total_seconds() / 86400
    for max_days, score in FRESHNESS_STEPS:
        if days_since <= max_days:
            return score
    return STALE_FRESHNESS_SCORE


def confidence_score(history: History, period: TimePeriod, now: datetime) -> int:
    """How much the window's data supports its conclusions (0-100).

    Weighted blend of data quantity relative to the period minimum, the
    share of non-missing metric values, the covered time span and the
    freshness of the latest point.

    Args:
        history: History points of the window
        period: Look-back window
        now: Reference time for freshness

    Returns:
        Integer confidence score
    """
    if not history:
        return 0

    period = TimePeriod(period)
    minimum = TREND_PARAMS[period.value]["minimum_data_points"]
    quantity = min(100.0, len(history) / (minimum * 2) * 100)

    total_fields = len(history) * len(HISTORY_METRICS)
    missing = sum(
        1 for r in history for metric in CATEGORY_METRICS if r.metric(metric) is None
    )
    consistency = (total_fields - missing) / total_fields * 100

    ordered = _sorted(history)
    actual_span = (ordered[-1].recorded_at - ordered[0].recorded_at).total_seconds()
    expected_span = timedelta(days=PERIOD_DAYS[period.value]).total_seconds()
    time_span = min(100.0, actual_span / expected_span * 100)

    freshness = data_freshness(history, now)

    confidence = (
        quantity * CONFIDENCE_WEIGHTS["quantity"]
        + consistency * CONFIDENCE_WEIGHTS["consistency"]
        + time_span * CONFIDENCE_WEIGHTS["time_span"]
        + freshness * CONFIDENCE_WEIGHTS["freshness"]
    )
    return clamp_score(confidence)


def insufficient_data_analysis(
    tracking_id: str, period: TimePeriod, now: datetime
) -> TrendAnalysis:
    """Fixed result for a window with too few points to analyze."""
    period = TimePeriod(period)
    return TrendAnalysis(
        tracking_id=tracking_id,
        time_period=period,
        overall_trend=TrendDirection.STABLE,
        trend_strength=TrendStrength.WEAK,
        confidence_score=INSUFFICIENT_DATA_CONFIDENCE,
        key_insights=[TrendInsight(
            type="recommendation",
            category="overall",
            title="Insufficient Data for Analysis",
            description=(
                f"Insufficient historical data available for {period.value} analysis. "
                f"Continue running audits to build comprehensive trend insights."
            ),
            impact="low",
            timeframe=period.value,
            confidence=INSUFFICIENT_DATA_CONFIDENCE,
            data_support=["Limited audit history available"],
        )],
        recommendations=[HistoricalRecommendation(
            priority="low",
            category="monitoring",
            title="Increase Data Collection",
            description=(
                f"Run additional audits to gather sufficient data for meaningful "
                f"{period.value} trend analysis"
            ),
            expected_impact="Enable comprehensive historical performance insights and recommendations",
            effort="low",
            timeframe="short-term",
            based_on=["Insufficient historical data points"],
        )],
        analysis_date=now,
    )


# =============================================================================
# Engine
# =============================================================================

class TrendAnalysisEngine:
    """Computes and stores trend analyses for tracked URLs.

    The engine only reads history from the repository and writes derived
    TrendAnalysis records; it never modifies history points.
    """

    def __init__(
        self,
        repository: AbstractRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.clock = clock

    def generate_trend_analysis(
        self, tracking_id: str, period: Union[TimePeriod, str]
    ) -> TrendAnalysis:
        """Analyze one look-back window and store the result.

        Args:
            tracking_id: Tracking record whose history is analyzed
            period: '7d', '30d', '90d' or '1y'

        Returns:
            The stored TrendAnalysis (replacing any previous one for the period)
        """
        period = TimePeriod(period)
        now = self.clock()
        start, end = period_window(period, now)
        history = self.repository.get_performance_history(tracking_id, start, end)
        params = TREND_PARAMS[period.value]

        if len(history) < params["minimum_data_points"]:
            logger.debug(
                f"{len(history)} points for {tracking_id} in {period.value}, "
                f"need {params['minimum_data_points']}"
            )
            analysis = insufficient_data_analysis(tracking_id, period, now)
            self.repository.save_trend_analysis(analysis)
            return analysis

        overall_trend = detect_overall_trend(history)
        improvements, regressions = significant_changes(
            history, params["significance_threshold"]
        )

        analysis = TrendAnalysis(
            tracking_id=tracking_id,
            time_period=period,
            overall_trend=overall_trend,
            trend_strength=trend_strength(history, overall_trend),
            confidence_score=confidence_score(history, period, now),
            key_insights=key_insights(history, period.value),
            improvements=improvements,
            regressions=regressions,
            recommendations=build_recommendations(history, improvements, regressions),
            analysis_date=now,
        )
        self.repository.save_trend_analysis(analysis)

        logger.info(
            f"{period.value} trend for {tracking_id}: {analysis.overall_trend.value} "
            f"({analysis.trend_strength.value}, confidence {analysis.confidence_score})"
        )
        return analysis

    def on_new_record_appended(self, tracking_id: str) -> None:
        """Refresh all four windows concurrently.

        A failing window is logged and does not affect the others.
        """
        with ThreadPoolExecutor(
            max_workers=len(TimePeriod), thread_name_prefix="trend"
        ) as executor:
            futures = {
                executor.submit(self.generate_trend_analysis, tracking_id, period): period
                for period in TimePeriod
            }
            for future in as_completed(futures):
                period = futures[future]
                try:
                    future.result()
                except Exception:
                    logger.exception(
                        f"Failed to generate {period.value} trend analysis for tracking {tracking_id}"
                    )
