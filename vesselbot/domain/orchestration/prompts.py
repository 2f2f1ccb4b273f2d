"""Prompts for the language model, formatted for WhatsApp replies"""

import json
from typing import Any, Dict


def _dump(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, default=str, ensure_ascii=False)


def intent_detection(user_message: str) -> str:
    return f"""You are a maritime vessel data assistant. Extract the vessel identifier and intent from this user message.

User message: "{user_message}"

Your task:
1. Extract vessel identifier:
   - Vessel name (e.g., "GCL YAMUNA", "MSC OSCAR")
   - OR IMO number (7 digits, e.g., "9481219")
   - If both present, prefer IMO number

2. Detect intent (one of):
   - risk_score: User wants the vessel's risk score
   - risk_level: User wants the vessel's risk level classification
   - recommendations: User wants vessel recommendations
   - vessel_info: User wants general vessel information
   - unknown: Intent cannot be determined

3. Assess confidence:
   - high: Clear intent and vessel identifier found
   - medium: Intent clear but vessel identifier uncertain
   - low: Unclear intent or no vessel identifier

Output format (JSON only, no other text):
{{
  "vessel_identifier": "vessel_name_or_imo_or_null",
  "intent": "risk_score|risk_level|recommendations|vessel_info|unknown",
  "confidence": "high|medium|low"
}}

Rules:
- Return JSON only, no explanations
- If vessel name found, use exact name as provided
- If IMO found, return as string (e.g., "9481219")
- If intent unclear, use "unknown"

Examples:
User: "What is the risk score for GCL YAMUNA?"
Output: {{"vessel_identifier": "GCL YAMUNA", "intent": "risk_score", "confidence": "high"}}

User: "Show me recommendations for 9481219"
Output: {{"vessel_identifier": "9481219", "intent": "recommendations", "confidence": "high"}}

User: "Get risk level"
Output: {{"vessel_identifier": null, "intent": "risk_level", "confidence": "medium"}}

User: "Hello"
Output: {{"vessel_identifier": null, "intent": "unknown", "confidence": "low"}}"""


def risk_score_analysis(vessel_data: Dict[str, Any]) -> str:
    return f"""You are a maritime risk analyst. Analyze this vessel's risk score and provide a brief, actionable assessment.

Vessel Data:
{_dump(vessel_data)}

1. Start with: "Risk Score: [score] ([level])" 📊
2. Break down 3-4 key risk factors with their individual scores where available, one bullet (•) each ⚠️
3. Finish with a 2-3 sentence overall assessment of what needs attention

Maximum 150 words. Use line breaks for readability and bold important numbers with *asterisks*.
Professional and direct; no marketing language, actionable rather than alarmist."""


def risk_level_analysis(vessel_data: Dict[str, Any]) -> str:
    return f"""You are a maritime risk analyst. Explain this vessel's risk level in practical terms.

Vessel Data:
{_dump(vessel_data)}

1. Start with: "Risk Level: [LEVEL]" 🔍
2. Explain in 2-3 sentences what this level means operationally
3. List 2-3 key factors driving the level, one bullet (•) each, with data points where available
4. Compare to typical fleet standards in 1-2 sentences if possible

Maximum 150 words. Use line breaks for readability and bold important terms with *asterisks*.
Professional and practical; focus on what operators should know."""


def recommendations_summary(recommendations_data: Dict[str, Any]) -> str:
    return f"""You are a maritime compliance assistant. Provide a very brief summary of vessel recommendations.

Recommendations Data:
{_dump(recommendations_data)}

1. Count items by severity using the format "X critical, Y moderate, Z recommended" 📋
2. List 2-3 main categories covered, one bullet (•) each

Maximum 100 words. Only counts and categories: do not analyze, interpret or suggest actions.
Format for WhatsApp with emoji 📋."""
