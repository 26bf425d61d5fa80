"""
Preference filtering.

Responsibilities:
- Read user preference profiles from the preference store.
- Score venues against one user's preferences, or against a pair's.
- Shortlist the best-matching venues before AI scoring.
"""
