"""
Domain services: user directory, message storage, realtime delivery and
token store maintenance.
"""
