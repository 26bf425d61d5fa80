"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build prompts from a couple's preferences and their top-scored venues.
- Rewrite the heuristic reasoning into a friendlier date pitch.
- Fall back to the heuristic reasoning when the LLM is unavailable or returns invalid output.
"""
