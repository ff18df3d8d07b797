"""Request authorization, rate limiting and log hygiene helpers."""
