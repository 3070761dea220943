"""
app/parsers/template.py

Sample upload template: eight SaaS metrics over three quarters.
"""

from __future__ import annotations

import csv
import io

import pandas as pd

TEMPLATE_SHEET_NAME = "ELT Data"
TEMPLATE_BASENAME = "elt-data-template"
TEMPLATE_COLUMNS: tuple[str, ...] = (
    "quarter",
    "year",
    "metric_name",
    "metric_value",
    "metric_unit",
    "category",
    "description",
    "target_value",
    "status",
)

# (metric_name, unit, category, description)
_METRICS: tuple[tuple[str, str, str, str], ...] = (
    ("Total ARR", "USD", "Growth & Retention", "Annual Recurring Revenue"),
    ("Net New ARR Added", "USD", "Growth & Retention", "New ARR added this quarter"),
    ("Churn", "USD", "Growth & Retention", "Churn amount (negative value)"),
    ("NRR", "%", "Growth & Retention", "Net Revenue Retention"),
    ("Burn Multiple", "x", "Financial & Sales", "Burn rate multiple"),
    ("CAC", "USD", "Financial & Sales", "Customer Acquisition Cost"),
    ("Deployment Frequency", "per month", "Product & Engineering", "Number of deployments per month"),
    ("eNPS (Employee Engagement)", "score", "People & Culture", "Employee Net Promoter Score"),
)

# quarter -> per-metric (value, target, status), same order as _METRICS
_SAMPLE_VALUES: dict[tuple[str, int], tuple[tuple[float, float, str], ...]] = {
    ("Q1", 2024): (
        (6520000, 7100000, "amber"),
        (238000, 350000, "red"),
        (-95000, -50000, "red"),
        (105, 110, "amber"),
        (1.35, 1, "red"),
        (2340, 2000, "red"),
        (12, 15, "amber"),
        (50, 60, "amber"),
    ),
    ("Q4", 2023): (
        (6282000, 7000000, "amber"),
        (285000, 300000, "amber"),
        (-125000, -80000, "red"),
        (102, 110, "red"),
        (1.42, 1, "red"),
        (2580, 2000, "red"),
        (10, 15, "red"),
        (42, 60, "red"),
    ),
    ("Q3", 2023): (
        (6120000, 6500000, "amber"),
        (320000, 280000, "green"),
        (-88000, -90000, "green"),
        (108, 110, "amber"),
        (1.28, 1, "amber"),
        (2180, 2000, "amber"),
        (14, 15, "amber"),
        (48, 60, "amber"),
    ),
}


def template_rows() -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for (quarter, year), values in _SAMPLE_VALUES.items():
        for (name, unit, category, description), (value, target, status) in zip(_METRICS, values):
            rows.append(
                {
                    "quarter": quarter,
                    "year": year,
                    "metric_name": name,
                    "metric_value": value,
                    "metric_unit": unit,
                    "category": category,
                    "description": description,
                    "target_value": target,
                    "status": status,
                }
            )
    return rows


def template_csv() -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=TEMPLATE_COLUMNS, lineterminator="\n")
    writer.writeheader()
    writer.writerows(template_rows())
    return buffer.getvalue()


def template_xlsx() -> bytes:
    frame = pd.DataFrame(template_rows(), columns=list(TEMPLATE_COLUMNS))
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name=TEMPLATE_SHEET_NAME)
    return output.getvalue()
