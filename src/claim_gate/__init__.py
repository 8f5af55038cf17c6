"""Claim Gate: signature-authorized, replay-guarded purchase and reward claims."""

__version__ = "0.1.0"
