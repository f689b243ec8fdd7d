"""Pytest bootstrap configuration.

Keep settings deterministic before test collection: no gateway is enabled
from a developer's .env and logs render as JSON.
"""
import os

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("PAYMENT__STRIPE__ENABLED", "false")
os.environ.setdefault("PAYMENT__RAZORPAY__ENABLED", "false")
