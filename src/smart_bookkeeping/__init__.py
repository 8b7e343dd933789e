"""
Recognition → Confidence Scoring → Human feedback → Calibrated confidence

An adaptive confidence engine for AI-assisted bookkeeping: every recognized
transaction field gets a trust score, and those scores are recalibrated
from the user's accept/correct feedback over time.
"""

__version__ = "0.1.0"
