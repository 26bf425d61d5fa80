"""
Venue aggregation layer.

Responsibilities:
- Normalise Google Places and Foursquare payloads into one venue record.
- Query providers according to the configured search strategy.
- Deduplicate and merge venues reported by more than one provider.
- Cache results per geo-cell and fall back to the venue catalog.
"""
