"""Utility modules for the Pocket Mechanic diagnosis backend"""

from .logger import setup_logger, log_pipeline_step, log_success, log_error, log_warning, log_metric
from .errors import PipelineError, ProviderError, ValidationError, ConfigurationError

__all__ = [
    'setup_logger', 'log_pipeline_step', 'log_success', 'log_error', 'log_warning', 'log_metric',
    'PipelineError', 'ProviderError', 'ValidationError', 'ConfigurationError'
]
