"""Training loops and pipeline assembly."""

from .pipelines import load_preset, presets, run_pipeline
from .trainer import FitResult, Trainer

__all__ = ["FitResult", "Trainer", "load_preset", "presets", "run_pipeline"]
