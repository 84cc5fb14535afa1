"""
Prompts Package
System prompts and templates for the Pocket Mechanic diagnosis assistant.
"""

from .system_prompts import (
    DIAGNOSTIC_SYSTEM_PROMPT,
    JSON_RESPONSE_INSTRUCTIONS,
    KNOWLEDGE_CONTEXT_HEADER,
    UNKNOWN_VEHICLE
)

from .templates import (
    DOCUMENT_SEPARATOR,
    build_diagnosis_prompt,
    describe_vehicle,
    format_knowledge_context,
    format_knowledge_document,
    get_prompt_stats
)

__all__ = [
    # System prompts
    'DIAGNOSTIC_SYSTEM_PROMPT',
    'JSON_RESPONSE_INSTRUCTIONS',
    'KNOWLEDGE_CONTEXT_HEADER',
    'UNKNOWN_VEHICLE',
    # Template functions
    'DOCUMENT_SEPARATOR',
    'build_diagnosis_prompt',
    'describe_vehicle',
    'format_knowledge_context',
    'format_knowledge_document',
    'get_prompt_stats'
]
