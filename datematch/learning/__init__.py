"""
Feedback-driven learning.

Responsibilities:
- Read per-user feature weights, clamped to a safe range.
- Turn learning history into a confidence boost for AI scores.
- Adapt weights and prediction accuracy from rated dates.
"""
