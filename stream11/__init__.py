"""
stream11: Twitch-authenticated stream predictions backend.

Viewers sign in with Twitch, open two-outcome predictions, vote once per
prediction and earn points when the creator resolves a prediction in
their favour. Persistence is MongoDB through Motor; the HTTP API is
FastAPI.
"""

__version__ = "0.1.0"
