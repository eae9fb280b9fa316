"""
Parking recommendation engine.

Responsibilities:
- Predict time-of-day demand and score spaces on distance, availability,
  price, rating, history and demand.
- Rank bookable spaces, label them and explain the score breakdown.
- Annotate candidates with per-user personalization boosts.
- Offer a plain distance / price / rating ordering for callers that do not
  want the weighted model.
"""
