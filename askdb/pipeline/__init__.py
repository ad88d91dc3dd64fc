"""Natural-language question pipeline."""

from askdb.pipeline.classifier import ResultClassifier
from askdb.pipeline.orchestrator import PipelineState, QueryOrchestrator
from askdb.pipeline.responses import render_error

__all__ = ["PipelineState", "QueryOrchestrator", "ResultClassifier", "render_error"]
