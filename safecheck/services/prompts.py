"""
AI prompt templates for product label safety analysis.

Templates use str.format slots so each part of the profile context
(profiles, combined allergies, age groups) can be filled and tested on its own.
"""

# =============================================================================
# PROFILE / FAMILY CONTEXT
# =============================================================================

PROFILE_CONTEXT_TEMPLATE = """IMPORTANT PROFILES IN CONTEXT:
{profile_lines}

COMBINED ALLERGIES: {combined_allergies}

AGE GROUPS IN FAMILY:
{age_group_lines}

{instructions}"""

PROFILE_CONTEXT_INSTRUCTIONS = """CRITICAL: If this product contains any ingredients matching any of the combined allergies ({critical_allergies}) OR is unsafe for any of the age groups listed above, you MUST:
1. Highlight it as a safety concern for those members.
2. Lower the safety rating accordingly.
3. Include a "familyWarnings" entry specifying which profile(s) or age group(s) are at risk.
4. Repeat under "personalizedWarnings"."""

NO_PROFILE_CONTEXT = (
    "No profile or family selected. Provide a general safety analysis."
)

PROFILE_LINE_TEMPLATE = "- Name: {name} | Age: {age} | Allergies: {allergies}"


# =============================================================================
# PRODUCT ANALYSIS
# =============================================================================

PRODUCT_ANALYSIS_PROMPT = """Analyze this product image and provide detailed safety information with special attention to user allergies and family context.

{profile_context}

Please respond in strict JSON format, using exactly this structure:

```
{{
  "productName": "Product name from the image",
  "safetyRating": 1-5 (1 = very unsafe, 5 = very safe),
  "overallSafety": "Short overall assessment",
  "generalSafety": "General safety description",
  "harmfulIngredients": ["List harmful ingredients with brief explanations"],
  "allergyWarnings": ["CRITICAL: List any ingredients matching user's allergies"],
  "familyWarnings": ["List any issues for specific family members or age groups"],
  "ageSpecificWarnings": {{
    "babies": "Safety info for babies/infants",
    "children": "Safety info for children",
    "adults": "Safety info for adults",
    "elderly": "Safety info for elderly"
  }},
  "compoundInteractions": ["List dangerous compound interactions"],
  "recommendations": ["List safety recommendations"],
  "personalizedWarnings": ["Specific warnings based on user profile, especially allergies"]
}}
```

IMPORTANT:
- Always include every key exactly as shown.
- If there's nothing to report for a field, return:
  * an empty string ("") for string values,
  * an empty array ([]) for array values,
  * and an object with empty strings for nested objects (e.g. "ageSpecificWarnings": {{ "babies": "", "children": "", "adults": "", "elderly": "" }}).
- Do NOT omit any field under any circumstances.
- Do not include any extra fields, only that exact JSON.

Focus on ingredients visible in the image. Be as thorough as possible."""

PRODUCT_ANALYSIS_SYSTEM_PROMPT = """You are a food and consumer product safety assistant.

You read ingredient labels from photos and assess them for allergens, harmful additives, age-specific risks and dangerous compound interactions.

GUIDELINES:
- Use qualified language ("may be a concern for", not "will harm")
- Never diagnose medical conditions
- Recommend professional advice for serious allergies
- Return ONLY the JSON object requested, no extra commentary"""


def build_analysis_prompt(profile_context: str) -> str:
    """Splice a rendered profile context into the product analysis request."""
    return PRODUCT_ANALYSIS_PROMPT.format(profile_context=profile_context)
