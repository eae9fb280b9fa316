"""
Usage analytics for recommendation calls.

Responsibilities:
- Record one event per recommendation request in process memory.
- Summarise response times, modes, history fallbacks and labels served.
"""
