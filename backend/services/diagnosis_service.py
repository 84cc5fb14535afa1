"""
Diagnosis Service
Generates a structured diagnosis from symptom text: Retrieve → Prompt → Complete → Parse.
Falls back to keyword rules whenever the AI path fails, so callers always get a result.
"""

import math
from typing import Any, Dict, List, Optional

from models.domain import DiagnosisResult, VehicleInfo
from prompts import build_diagnosis_prompt, get_prompt_stats
from services.context_builder import ContextBuilder
from services.interfaces import CompletionProvider
from utils.errors import ValidationError
from utils.json_extraction import extract_json_object
from utils.logger import setup_logger, log_pipeline_step, log_success, log_warning

logger = setup_logger(__name__)


# Checked in order against the lowercased symptom text; first match wins.
FALLBACK_RULES: List[Dict[str, Any]] = [
    {
        "keywords": ["grind", "squeal", "brake"],
        "diagnosis": (
            "Based on the grinding or squealing sounds, this likely indicates worn brake pads or rotors. "
            "The metal-on-metal contact suggests immediate attention is needed to ensure safe braking."
        ),
        "parts": ["Brake Pad Set", "Brake Rotors", "Brake Hardware Kit"],
        "cost": 350,
        "confidence": 75,
    },
    {
        "keywords": ["overheat", "radiator", "coolant", "hiss"],
        "diagnosis": (
            "Overheating and hissing sounds typically indicate a coolant leak, failed thermostat, or water pump issue. "
            "Check coolant levels immediately and inspect for visible leaks."
        ),
        "parts": ["Thermostat", "Water Pump", "Coolant", "Radiator Hoses"],
        "cost": 450,
        "confidence": 70,
    },
    {
        "keywords": ["start", "crank", "battery", "stall"],
        "diagnosis": (
            "Starting problems or stalling can stem from battery, alternator, or fuel system issues. "
            "Test the battery voltage and check for loose connections or corroded terminals."
        ),
        "parts": ["Battery", "Alternator", "Fuel Filter", "Spark Plugs"],
        "cost": 400,
        "confidence": 65,
    },
    {
        "keywords": ["noise", "sound", "whine", "belt"],
        "diagnosis": (
            "Whining or unusual noises often indicate belt issues, bearing wear, or pulley problems. "
            "A visual inspection of belts and pulleys is recommended."
        ),
        "parts": ["Serpentine Belt", "Belt Tensioner", "Idler Pulley"],
        "cost": 250,
        "confidence": 60,
    },
]

DEFAULT_FALLBACK = {
    "diagnosis": (
        "Based on the symptoms described, a comprehensive diagnostic inspection is recommended "
        "to accurately identify the issue."
    ),
    "parts": ["Diagnostic Inspection"],
    "cost": 125,
    "confidence": 50,
}

UNDETERMINED_DIAGNOSIS = "Unable to determine"


def generate_fallback_diagnosis(symptom_text: str, rules: List[Dict[str, Any]] = None) -> DiagnosisResult:
    """
    Rule-based diagnosis from symptom keywords.

    Args:
        symptom_text: Customer's description of the problem
        rules: Optional replacement for FALLBACK_RULES

    Returns:
        DiagnosisResult for the first matching rule, or a generic inspection
    """
    lower = (symptom_text or "").lower()
    matched = DEFAULT_FALLBACK

    for rule in (rules if rules is not None else FALLBACK_RULES):
        if any(keyword in lower for keyword in rule["keywords"]):
            matched = rule
            break

    return DiagnosisResult(
        diagnosis=matched["diagnosis"],
        recommended_parts=list(matched["parts"]),
        estimated_cost=float(matched["cost"]),
        confidence=int(matched["confidence"]),
    )


def _parse_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"'{field_name}' must be a number")

    number = None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.replace("$", "").replace(",", "").strip()
        try:
            number = float(cleaned)
        except ValueError:
            pass

    # json.loads accepts Infinity, NaN and 1e400
    if number is not None and math.isfinite(number):
        return number
    raise ValidationError(f"'{field_name}' must be a number, got {value!r}")


def parse_diagnosis_payload(payload: Dict[str, Any]) -> DiagnosisResult:
    """
    Validate a parsed completion payload into a DiagnosisResult.

    Missing fields take defaults (diagnosis "Unable to determine", no parts,
    cost 0, confidence 0). Cost is floored at 0 and confidence clamped to 0-100.

    Raises:
        ValidationError: If a field is present with an unusable type
    """
    diagnosis = payload.get("diagnosis")
    if diagnosis is None:
        diagnosis = UNDETERMINED_DIAGNOSIS
    elif not isinstance(diagnosis, str):
        raise ValidationError("'diagnosis' must be a string")
    elif not diagnosis.strip():
        diagnosis = UNDETERMINED_DIAGNOSIS

    parts = payload.get("recommendedParts")
    if parts is None:
        parts = []
    elif not isinstance(parts, list):
        raise ValidationError("'recommendedParts' must be a list")
    elif any(isinstance(part, (dict, list)) for part in parts):
        raise ValidationError("'recommendedParts' must contain strings")
    parts = [str(part).strip() for part in parts if part is not None and str(part).strip()]

    cost = payload.get("estimatedCost")
    cost = 0.0 if cost is None else max(0.0, _parse_number(cost, "estimatedCost"))

    confidence = payload.get("confidence")
    confidence = 0 if confidence is None else int(round(_parse_number(confidence, "confidence")))
    confidence = min(100, max(0, confidence))

    return DiagnosisResult(
        diagnosis=diagnosis.strip(),
        recommended_parts=parts,
        estimated_cost=round(cost, 2),
        confidence=confidence,
    )


class DiagnosisGenerator:
    """Generates diagnoses with an LLM, grounded by repair knowledge."""

    def __init__(
        self,
        completion_provider: Optional[CompletionProvider] = None,
        context_builder: Optional[ContextBuilder] = None,
        fallback_rules: List[Dict[str, Any]] = None
    ):
        """
        Args:
            completion_provider: LLM; None means rule-based diagnosis only
            context_builder: Knowledge retrieval; None means no grounding context
            fallback_rules: Optional replacement for FALLBACK_RULES
        """
        self.completion_provider = completion_provider
        self.context_builder = context_builder
        self.fallback_rules = fallback_rules

        self.ai_diagnoses = 0
        self.fallback_diagnoses = 0

    def generate_diagnosis(
        self,
        symptom_text: str,
        vehicle_info: Optional[VehicleInfo] = None
    ) -> DiagnosisResult:
        """
        Diagnose the symptoms. Never raises.

        Args:
            symptom_text: Customer's description of the problem
            vehicle_info: Optional year/make/model

        Returns:
            AI diagnosis when the completion parses, otherwise the rule-based fallback
        """
        if self.completion_provider is None:
            log_warning(logger, "No completion provider configured, using rule-based diagnosis")
            return self._fallback(symptom_text)

        try:
            log_pipeline_step(logger, 1, "Retrieving repair knowledge")
            context = self.context_builder.build_context(symptom_text) if self.context_builder else ""

            log_pipeline_step(logger, 2, "Generating diagnosis")
            prompt = build_diagnosis_prompt(symptom_text, vehicle_info, context)
            logger.debug(f"Prompt size: ~{get_prompt_stats(prompt)['estimated_tokens']:.0f} tokens")
            response_text = self.completion_provider.complete(prompt)

            log_pipeline_step(logger, 3, "Parsing diagnosis")
            result = parse_diagnosis_payload(extract_json_object(response_text))
        except Exception as e:
            log_warning(logger, f"AI diagnosis failed ({type(e).__name__}: {e}), using rule-based diagnosis")
            return self._fallback(symptom_text)

        self.ai_diagnoses += 1
        log_success(logger, f"AI diagnosis generated (confidence {result.confidence})")
        return result

    def _fallback(self, symptom_text: str) -> DiagnosisResult:
        self.fallback_diagnoses += 1
        return generate_fallback_diagnosis(symptom_text, self.fallback_rules)
