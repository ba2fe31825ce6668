"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Extract structured product rows from scraped product pages.
- Write short caregiver-facing notes for ranked picks.
- Graceful fallback when the LLM is unavailable or returns invalid output.
"""
