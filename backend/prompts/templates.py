"""
Prompt Templates for diagnosis generation
Handles formatting of retrieved repair knowledge and the diagnosis prompt.
"""

from typing import List, Dict, Any, Optional

from models.domain import KnowledgeDocument, VehicleInfo
from .system_prompts import (
    DIAGNOSTIC_SYSTEM_PROMPT,
    JSON_RESPONSE_INSTRUCTIONS,
    KNOWLEDGE_CONTEXT_HEADER,
    UNKNOWN_VEHICLE
)

# Separator between knowledge documents in the context block
DOCUMENT_SEPARATOR = "\n\n---\n\n"


def format_knowledge_document(doc: KnowledgeDocument) -> str:
    """Format one knowledge article as a title/category/content block."""
    return f"""Title: {doc.title}
Category: {doc.category}
{doc.content}"""


def format_knowledge_context(documents: List[KnowledgeDocument]) -> str:
    """
    Join knowledge articles into a single context block.

    Returns:
        Context string, or "" when there are no documents
    """
    if not documents:
        return ""
    return DOCUMENT_SEPARATOR.join(format_knowledge_document(doc) for doc in documents)


def describe_vehicle(vehicle_info: Optional[VehicleInfo]) -> str:
    return vehicle_info.describe() if vehicle_info else UNKNOWN_VEHICLE


def build_diagnosis_prompt(
    symptom_text: str,
    vehicle_info: Optional[VehicleInfo] = None,
    context: str = "",
    system_prompt: str = DIAGNOSTIC_SYSTEM_PROMPT
) -> str:
    """
    Build the complete diagnosis prompt.

    Args:
        symptom_text: Customer's description of the problem
        vehicle_info: Optional year/make/model
        context: Retrieved repair knowledge (omitted when empty)
        system_prompt: Role framing

    Returns:
        Prompt string
    """
    prompt_parts = [system_prompt.strip(), ""]

    prompt_parts.append(f"Vehicle: {describe_vehicle(vehicle_info)}")
    prompt_parts.append(f"Symptoms: {symptom_text.strip()}")
    prompt_parts.append("")

    if context and context.strip():
        prompt_parts.append(KNOWLEDGE_CONTEXT_HEADER)
        prompt_parts.append(context.strip())
        prompt_parts.append("")

    prompt_parts.append(JSON_RESPONSE_INSTRUCTIONS)

    return "\n".join(prompt_parts)


def get_prompt_stats(prompt: str) -> Dict[str, Any]:
    """
    Get statistics about a prompt.

    Args:
        prompt: The prompt string

    Returns:
        Dictionary with prompt statistics
    """
    return {
        "total_chars": len(prompt),
        "total_words": len(prompt.split()),
        "total_lines": len(prompt.split('\n')),
        "estimated_tokens": len(prompt) / 4  # Rough estimate: 1 token ≈ 4 chars
    }
