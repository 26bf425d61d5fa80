"""
Date recommendation pipeline.

Responsibilities:
- Resolve candidate venues for a user (and optional partner) near a location.
- Shortlist candidates by stated preferences, solo or collaborative.
- Score the shortlist with the AI score engine and rank it.
- Attach display fields (distance, open now, neighborhood) for the client.
"""
