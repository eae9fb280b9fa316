"""
Parking space recommendation service.

Ranks live parking spaces for a driver by distance, availability, price,
rating, time-of-day demand and past booking outcomes.
"""
