"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build prompts from ranking criteria and the ranked catalog items.
- Call Groq to write a short explanation of a recommendation.
- Graceful fallback when the LLM is unavailable or returns nothing usable.
"""
