"""
Usage admission controller.

Exports: AdmissionController, policy_table, window_key, window_start
"""

from flowchart_ai.core.admission.controller import AdmissionController, denial_reason
from flowchart_ai.core.admission.policy import (
    EVER_WINDOW_KEY,
    day_start,
    month_start,
    next_month_start,
    policy_table,
    window_key,
    window_start,
)

__all__ = [
    "AdmissionController",
    "denial_reason",
    "EVER_WINDOW_KEY",
    "day_start",
    "month_start",
    "next_month_start",
    "policy_table",
    "window_key",
    "window_start",
]
