"""
Prompt templates for website enrichment and risk assessment.

Both prompts request a single JSON object; the adapter treats anything else
as a fallback case.
"""

TRANSLATION_LANGUAGES = ("en", "no", "sv", "da", "fi", "de")

ENRICHMENT_PROMPT = """You are analyzing the public website of a registered business.
Company: {company_name}
Website: {website}
Country: {country_code}

Based only on the website content below, return a JSON object with exactly these keys:
{{
  "description": "2-3 sentence neutral description of what the company does",
  "industry_category": "one short industry label, or \\"Unknown\\"",
  "services": ["up to 8 services"],
  "products": ["up to 8 products"],
  "search_keywords": ["up to 10 keywords customers would search for"],
  "translations": {{
    "<language code>": {{"description": "...", "services": ["..."]}}
  }},
  "risk_signals": ["anything that looks deceptive or inconsistent, empty if none"]
}}
Provide translations for these language codes: {languages}.
Do not invent facts that are not supported by the content.

--- WEBSITE CONTENT ---
{content}
"""

RISK_PROMPT = """You are a fraud analyst assessing whether a business website is legitimate.
Company: {company_name}
Website: {website}
Registry status: {registry_status}
Uses HTTPS: {has_ssl}
Contact emails: {emails}

Return a JSON object with exactly these keys:
{{
  "is_scam": false,
  "risk_level": "LOW | MEDIUM | HIGH | CRITICAL",
  "credibility_score": 0-100,
  "red_flags": ["concrete problems found, empty if none"],
  "trust_signals": ["concrete positive signals"],
  "summary": "one sentence"
}}

--- WEBSITE CONTENT ---
{content}
"""


def truncate_content(content: str, max_chars: int) -> str:
    """Hard-truncate the content window."""
    if len(content) <= max_chars:
        return content
    return content[:max_chars]
