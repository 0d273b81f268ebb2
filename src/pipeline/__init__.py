"""Pipeline framework for data processing workflows."""

from .decoration import step
from .logger import setup_logging
from .pipeline import Pipeline

__all__ = ["Pipeline", "setup_logging", "step"]
