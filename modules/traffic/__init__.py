from .core import (
    AnalysisRequest,
    analyze_traffic,
    effective_radius_miles,
    parse_analysis_request,
    pipeline_config_from_settings,
)
from .schemas import PipelineConfig, TrafficAnalysisResponse, TrafficErrorResponse

__all__ = [
    "AnalysisRequest",
    "analyze_traffic",
    "effective_radius_miles",
    "parse_analysis_request",
    "pipeline_config_from_settings",
    "PipelineConfig",
    "TrafficAnalysisResponse",
    "TrafficErrorResponse",
]
