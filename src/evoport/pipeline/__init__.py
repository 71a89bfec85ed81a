"""Pipeline orchestration for weight optimisation and asset selection.

This module provides reusable functions for each stage of the GA portfolio
pipeline, allowing both scripted execution and programmatic use.
"""

from __future__ import annotations

__all__ = [
    "AssetSelectionResult",
    "PipelineError",
    "WeightOptimizationResult",
    "run_asset_selection",
    "run_full_pipeline",
    "run_weight_optimization",
]

from .asset_selection import AssetSelectionResult, run_asset_selection
from .optimization import WeightOptimizationResult, run_weight_optimization
from .orchestrator import PipelineError, run_full_pipeline
