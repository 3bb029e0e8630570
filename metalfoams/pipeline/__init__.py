"""Run configuration and the end-to-end comparison pipeline."""

from metalfoams.pipeline.pipelineconfig import (
    AxisConfig,
    PipelineConfig,
    load_config,
)
from metalfoams.pipeline.pipelineapi import (
    PlotSpec,
    PipelineResult,
    plot_spec,
    run_pipeline,
)

__all__ = [
    "AxisConfig",
    "PipelineConfig",
    "load_config",
    "PlotSpec",
    "PipelineResult",
    "plot_spec",
    "run_pipeline",
]
