"""Prompt builder for the quarterly metrics narrative."""

from typing import Dict, Mapping, Optional

from app.domain.metrics import normalize_metric_key
from llm_synthesis.schema import CurrentQuarterRef, QoQComparisonPayload

# Metric keys where a decrease is an improvement.
LOWER_IS_BETTER = frozenset({"cac", "burnmultiple"})

_REQUESTED_SECTIONS = """\
Please provide:
1. EXECUTIVE SUMMARY (2-3 sentences focusing on current performance and trends)
2. KEY INSIGHTS (3-5 bullet points highlighting both current metrics and QoQ changes)
3. AREAS OF CONCERN (red status items and declining trends)
4. RECOMMENDATIONS (actionable next steps based on current performance and trends)
5. TRENDS TO WATCH (metrics showing significant QoQ changes that need attention)

Format the response in clear, business-friendly language suitable for executive \
presentation. Focus on both current quarter performance and the quarter-over-quarter \
trends to provide actionable insights.
"""


class InsightPromptBuilder:
    """Builds the user prompt sent to the narrative generator.

    The prompt lists the current quarter's metrics, then an optional
    quarter-over-quarter section (only when both comparisons and the
    current quarter are supplied), then the five requested sections.
    """

    def build_prompt(
        self,
        key_metrics: Mapping[str, Mapping[str, object]],
        qoq_comparisons: Optional[Dict[str, QoQComparisonPayload]] = None,
        current_quarter: Optional[CurrentQuarterRef] = None,
        metrics_quarter: Optional[str] = None,
    ) -> str:
        lines = ["Please analyze the following SaaS dashboard metrics and provide insights:", ""]

        heading = "CURRENT QUARTER METRICS"
        if metrics_quarter:
            heading += f" ({metrics_quarter})"
        lines.append(f"{heading}:")
        if key_metrics:
            for key, metric in key_metrics.items():
                lines.append(self._metric_line(key, metric))
        else:
            lines.append("- No metrics have been uploaded yet.")

        if qoq_comparisons and current_quarter is not None:
            lines.append("")
            lines.append(
                "QUARTER-OVER-QUARTER COMPARISON "
                f"({current_quarter.quarter} {current_quarter.year} vs Previous Quarter):"
            )
            for metric_name, comparison in qoq_comparisons.items():
                lines.append(self._qoq_line(metric_name, comparison))
            lines.append("")
            lines.append(
                "Analyze both the current quarter performance AND the quarter-over-quarter "
                "trends to provide comprehensive insights."
            )

        lines.append("")
        lines.append(_REQUESTED_SECTIONS)
        return "\n".join(lines)

    @staticmethod
    def _metric_line(key: str, metric: Mapping[str, object]) -> str:
        name = metric.get("metric_name") or key
        unit = metric.get("unit") or ""
        line = f"- {name}: {_format_number(metric.get('value'))}{_unit_suffix(unit)}"
        if metric.get("target") is not None:
            line += f" (Target: {_format_number(metric.get('target'))}{_unit_suffix(unit)})"
        line += f" - Status: {metric.get('status') or 'neutral'}"
        if normalize_metric_key(str(name)) in LOWER_IS_BETTER:
            line += " (Lower is better)"
        return line

    @staticmethod
    def _qoq_line(metric_name: str, comparison: QoQComparisonPayload) -> str:
        change = comparison.change
        if change is None:
            change_text = "n/a"
            direction = "no comparison"
        else:
            change_text = f"+{_format_number(change)}" if change > 0 else _format_number(change)
            direction = "up" if change > 0 else "down" if change < 0 else "flat"

        percent_text = "n/a" if comparison.change_percent is None else f"{comparison.change_percent:.1f}%"
        line = f"- {metric_name}: {change_text} ({percent_text}) {direction}"

        if comparison.current is not None:
            line += f" - Current: {_side_text(comparison.current.metric_value, comparison.current.metric_unit)}"
        if comparison.previous is not None:
            line += f", Previous: {_side_text(comparison.previous.metric_value, comparison.previous.metric_unit)}"
        return line


def _format_number(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _unit_suffix(unit: object) -> str:
    if not unit:
        return ""
    unit_text = str(unit)
    return unit_text if unit_text in {"%", "x"} else f" {unit_text}"


def _side_text(value: Optional[float], unit: Optional[str]) -> str:
    if value is None:
        return "n/a"
    return f"{_format_number(value)}{_unit_suffix(unit)}"
