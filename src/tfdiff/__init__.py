"""Structured change diff and rendering for Terraform plans and state."""

from tfdiff.actions import classify_actions, summary_counts
from tfdiff.formatter import format_value
from tfdiff.renderer import ChangeRecord, render_change

__all__ = [
    "ChangeRecord",
    "classify_actions",
    "format_value",
    "render_change",
    "summary_counts",
]
