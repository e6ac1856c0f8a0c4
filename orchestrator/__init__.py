"""Orchestrator module for end-to-end flowsmith runs."""

from .pipeline import AutomationPipeline, run_pipeline

__all__ = [
    "AutomationPipeline",
    "run_pipeline",
]
