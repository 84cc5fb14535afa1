"""
Query Synthesizer
Builds a diversified set of video search queries from symptoms, diagnosis and vehicle.
"""

from typing import Dict, List, Optional

from models.domain import VehicleInfo

# Issue keyword (case-insensitive substring of the diagnosis) -> curated queries
COMMON_ISSUE_QUERIES: Dict[str, List[str]] = {
    "CV joint": [
        "CV joint replacement explained",
        "CV joint symptoms",
        "how much does CV joint cost",
        "CV joint clicking noise",
    ],
    "brake": [
        "brake pad replacement",
        "brake noise diagnosis",
        "brake repair cost",
        "how to know when brakes need replacing",
    ],
    "alternator": [
        "alternator failure symptoms",
        "how to test alternator",
        "alternator replacement cost",
        "battery vs alternator problem",
    ],
    "transmission": [
        "transmission slipping symptoms",
        "transmission fluid change",
        "transmission repair cost",
        "automatic transmission problems",
    ],
    "engine misfire": [
        "engine misfire diagnosis",
        "P0300 code explained",
        "misfire repair cost",
        "spark plug replacement",
    ],
}


class QuerySynthesizer:
    """Turns a diagnosis into search queries for the video corpus."""

    def __init__(self, issue_queries: Optional[Dict[str, List[str]]] = None):
        self.issue_queries = issue_queries if issue_queries is not None else COMMON_ISSUE_QUERIES

    def build_queries(
        self,
        diagnosis_text: str,
        symptoms: List[str],
        vehicle_info: Optional[VehicleInfo] = None
    ) -> List[str]:
        """
        Build search queries in fan-out order.

        Queries are not deduplicated here; duplicate videos are removed after search.

        Args:
            diagnosis_text: Diagnosis prose (or short label)
            symptoms: Customer symptom strings
            vehicle_info: Optional year/make/model

        Returns:
            List of query strings, at least 2 per symptom
        """
        queries: List[str] = []

        for symptom in symptoms:
            queries.append(f"car {symptom} diagnosis")
            queries.append(f"how to fix {symptom}")

        diagnosis_lower = diagnosis_text.lower()
        for keyword, search_terms in self.issue_queries.items():
            if keyword.lower() in diagnosis_lower:
                queries.extend(search_terms)

        # No issue keyword matched: search on the diagnosis itself
        if len(queries) == len(symptoms) * 2:
            queries.append(f"{diagnosis_text} diagnosis")
            queries.append(f"how to fix {diagnosis_text}")
            queries.append(f"{diagnosis_text} repair cost")

        if vehicle_info:
            queries.append(f"{vehicle_info.year} {vehicle_info.make} {vehicle_info.model} {diagnosis_text}")
            queries.append(f"{vehicle_info.make} {vehicle_info.model} common problems")

        return queries
