"""Promptsmith: heuristic prompt optimizer for LLM task descriptions."""

from promptsmith.core.models.entities import OptimizationContext, OptimizationResult
from promptsmith.core.optimizer import PromptOptimizer

__version__ = "0.1.0"

__all__ = ["OptimizationContext", "OptimizationResult", "PromptOptimizer"]
