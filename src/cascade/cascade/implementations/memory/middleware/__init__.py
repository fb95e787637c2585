# ABOUTME: In-memory middleware implementations package
# ABOUTME: Exports the list-backed middleware pipeline

from .pipeline import ComposeFunction, MiddlewarePipeline

__all__ = ["ComposeFunction", "MiddlewarePipeline"]
