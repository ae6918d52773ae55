"""
VType realtime chat service.

Presence, direct messaging and JWT session management on FastAPI.
"""

__version__ = "1.0.0"
