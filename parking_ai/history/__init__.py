"""
Historical booking analysis.

Responsibilities:
- Read past parking transactions through the history feed.
- Roll them up into per-space aggregates over a trailing window.
- Predict whether a space will be free at a future time.
- Degrade to an explicit "failed" result instead of raising when the
  feed is unavailable.
"""
