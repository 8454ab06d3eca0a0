from __future__ import annotations

SYNTHESIS_SYSTEM_PROMPT = (
    "You are a nutrition science expert. You analyze research about a food ingredient and "
    "give a clear, evidence-based recommendation for an average consumer. "
    "Only state claims supported by the provided research. No medical advice."
)

SYNTHESIS_USER_TEMPLATE = """Analyze the following research about "{ingredient}" and provide a clear, evidence-based recommendation.

RESEARCH PAPERS ({total_results} found, showing top {shown}):
{papers}

RECENT WEB FINDINGS:
{web_findings}

Based on this evidence, provide a recommendation in the following JSON format:
{{
  "summary": "One or two sentence verdict on this ingredient",
  "safetyLevel": "safe|caution|avoid|insufficient_data",
  "keyPoints": ["Main finding 1", "Main finding 2", "Main finding 3"],
  "concerns": ["Any warnings or concerns"],
  "benefits": ["Any potential benefits"],
  "recommendation": "Detailed 2-3 sentence recommendation for the average consumer",
  "confidence": "high|medium|low"
}}

RULES:
- Only state claims supported by the provided research
- Include specific citations (PMID/DOI) when making claims
- If evidence is conflicting, say so
- If evidence is insufficient, say "insufficient_data"
- Be practical and actionable
- Recommend consulting professionals for health conditions

Return ONLY valid JSON, no other text."""
