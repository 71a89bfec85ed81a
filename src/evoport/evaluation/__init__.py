"""Public API for the evaluation toolkit (metrics, baselines, plots)."""

from . import plots as _plots
from . import report as _report
from .plots import *  # noqa: F401,F403 - deliberate re-export
from .report import *  # noqa: F401,F403

__all__ = sorted(set(_plots.__all__ + _report.__all__))
