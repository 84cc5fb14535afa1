"""
Unit tests for Diagnosis Service
Tests fallback rules, payload parsing and the AI → fallback path.
"""

import json

import pytest

from conftest import BRAKE_COMPLETION, FakeCompletionProvider, FakeKnowledgeStore
from models.domain import VehicleInfo
from prompts import KNOWLEDGE_CONTEXT_HEADER
from services.context_builder import ContextBuilder
from services.diagnosis_service import (
    DEFAULT_FALLBACK,
    FALLBACK_RULES,
    DiagnosisGenerator,
    generate_fallback_diagnosis,
    parse_diagnosis_payload,
)
from utils.errors import ProviderError, ValidationError


class TestFallbackDiagnosis:
    """Test the keyword rule table"""

    @pytest.mark.parametrize("symptom, cost, confidence, first_part", [
        ("Grinding noise when I brake", 350, 75, "Brake Pad Set"),
        ("Car squeals at stop lights", 350, 75, "Brake Pad Set"),
        ("Engine overheats in traffic", 450, 70, "Thermostat"),
        ("Hissing from under the hood", 450, 70, "Thermostat"),
        ("Car won't start in the morning", 400, 65, "Battery"),
        ("It stalls at idle", 400, 65, "Battery"),
        ("High pitched whine from the engine bay", 250, 60, "Serpentine Belt"),
        ("The check engine light is on", 125, 50, "Diagnostic Inspection"),
    ])
    def test_rule_table(self, symptom, cost, confidence, first_part):
        """TEST: Each keyword group maps to its fixed diagnosis, cost and confidence"""
        result = generate_fallback_diagnosis(symptom)

        assert result.estimated_cost == cost
        assert result.confidence == confidence
        assert result.recommended_parts[0] == first_part

    def test_first_matching_rule_wins(self):
        """
        TEST: Rules are checked in order

        GIVEN: Text matching both the brake rule and the noise rule
        WHEN: generate_fallback_diagnosis() is called
        THEN: The brake rule (listed first) is used
        """
        result = generate_fallback_diagnosis("grinding noise from the front wheels")

        assert result.estimated_cost == 350
        assert "brake" in result.diagnosis.lower()

    def test_matching_is_case_insensitive(self):
        """TEST: Upper-case symptoms still match"""
        assert generate_fallback_diagnosis("BRAKE PEDAL FEELS SOFT").confidence == 75

    def test_empty_text_uses_default(self):
        """TEST: Empty symptoms give the generic inspection"""
        result = generate_fallback_diagnosis("")

        assert result.recommended_parts == ["Diagnostic Inspection"]
        assert result.estimated_cost == DEFAULT_FALLBACK["cost"]

    def test_result_parts_are_copies(self):
        """TEST: Mutating a result never changes the rule table"""
        result = generate_fallback_diagnosis("brake squeal")
        result.recommended_parts.append("Extra")

        assert "Extra" not in FALLBACK_RULES[0]["parts"]


class TestParseDiagnosisPayload:
    """Test completion payload validation"""

    def test_complete_payload(self):
        """TEST: All four fields are carried over"""
        result = parse_diagnosis_payload(json.loads(BRAKE_COMPLETION))

        assert result.diagnosis == "Worn brake pads with scored rotors"
        assert result.recommended_parts == ["Brake Pad Set", "Brake Rotors"]
        assert result.estimated_cost == 380.0
        assert result.confidence == 82

    def test_missing_fields_take_defaults(self):
        """TEST: Missing fields default to 'Unable to determine', [], 0 and 0"""
        result = parse_diagnosis_payload({})

        assert result.diagnosis == "Unable to determine"
        assert result.recommended_parts == []
        assert result.estimated_cost == 0.0
        assert result.confidence == 0

    def test_confidence_is_clamped(self):
        """TEST: Confidence outside 0-100 is clamped"""
        assert parse_diagnosis_payload({"confidence": 140}).confidence == 100
        assert parse_diagnosis_payload({"confidence": -5}).confidence == 0

    def test_negative_cost_is_floored(self):
        """TEST: Negative cost becomes 0"""
        assert parse_diagnosis_payload({"estimatedCost": -20}).estimated_cost == 0.0

    def test_currency_strings_are_accepted(self):
        """TEST: '$1,200' parses to 1200.0"""
        assert parse_diagnosis_payload({"estimatedCost": "$1,200"}).estimated_cost == 1200.0

    @pytest.mark.parametrize("payload", [
        {"diagnosis": 42},
        {"recommendedParts": "brake pads"},
        {"recommendedParts": [{"name": "pads"}]},
        {"estimatedCost": "about three hundred"},
        {"confidence": True},
    ])
    def test_wrong_types_raise(self, payload):
        """TEST: Present fields with unusable types raise ValidationError"""
        with pytest.raises(ValidationError):
            parse_diagnosis_payload(payload)

    @pytest.mark.parametrize("payload", [
        json.loads('{"estimatedCost": 1e400}'),
        json.loads('{"estimatedCost": Infinity}'),
        json.loads('{"estimatedCost": NaN}'),
        {"estimatedCost": "inf"},
        json.loads('{"confidence": -Infinity}'),
    ])
    def test_non_finite_numbers_raise(self, payload):
        """TEST: Infinite or NaN cost and confidence are rejected, never serialized"""
        with pytest.raises(ValidationError):
            parse_diagnosis_payload(payload)


class TestDiagnosisGenerator:
    """Test the AI path and its fallback"""

    def test_ai_diagnosis_from_fenced_json(self):
        """
        TEST: JSON wrapped in prose and markdown fences is parsed

        GIVEN: A completion provider answering with text around a JSON object
        WHEN: generate_diagnosis() is called
        THEN: The AI diagnosis is returned and counted
        """
        provider = FakeCompletionProvider(f"Here is my analysis:\n```json\n{BRAKE_COMPLETION}\n```\nDrive safely!")
        generator = DiagnosisGenerator(provider)

        result = generator.generate_diagnosis("Grinding noise when braking")

        assert result.confidence == 82
        assert generator.ai_diagnoses == 1
        assert generator.fallback_diagnoses == 0

    def test_prompt_contains_vehicle_and_context(self, embedding_provider, knowledge_store):
        """TEST: The prompt carries the vehicle, symptoms and retrieved knowledge"""
        provider = FakeCompletionProvider(BRAKE_COMPLETION)
        generator = DiagnosisGenerator(provider, ContextBuilder(embedding_provider, knowledge_store))

        generator.generate_diagnosis("Grinding when braking", VehicleInfo(2018, "Honda", "Civic"))
        prompt = provider.prompts[0]

        assert "Vehicle: 2018 Honda Civic" in prompt
        assert "Symptoms: Grinding when braking" in prompt
        assert "Brake Pad Wear - Symptoms and Replacement" in prompt

    def test_no_provider_uses_fallback(self):
        """TEST: Without a completion provider the rule table is used"""
        generator = DiagnosisGenerator(None)

        result = generator.generate_diagnosis("Grinding noise when braking")

        assert result.estimated_cost == 350
        assert generator.fallback_diagnoses == 1

    @pytest.mark.parametrize("provider", [
        FakeCompletionProvider(error=ProviderError("rate limited", provider="openrouter")),
        FakeCompletionProvider("I think it's your brakes."),
        FakeCompletionProvider('{"diagnosis": ["not", "a", "string"]}'),
        FakeCompletionProvider(""),
        FakeCompletionProvider('{"diagnosis": "Worn pads", "estimatedCost": 1e400, "confidence": 80}'),
    ])
    def test_failures_use_fallback(self, provider):
        """TEST: Provider errors, missing JSON and bad payloads all fall back"""
        generator = DiagnosisGenerator(provider)

        result = generator.generate_diagnosis("Grinding noise when I brake")

        assert result.estimated_cost == 350
        assert result.confidence == 75
        assert generator.ai_diagnoses == 0

    def test_context_failure_does_not_block_ai(self, embedding_provider):
        """TEST: A failing knowledge store still lets the AI diagnose"""
        provider = FakeCompletionProvider(BRAKE_COMPLETION)
        builder = ContextBuilder(embedding_provider, FakeKnowledgeStore(fail=True))
        generator = DiagnosisGenerator(provider, builder)

        result = generator.generate_diagnosis("Grinding when braking")

        assert result.confidence == 82
        assert KNOWLEDGE_CONTEXT_HEADER not in provider.prompts[0]
