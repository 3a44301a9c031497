"""
meetingslots - find meeting times when every participant is free.
"""

__version__ = "0.1.0"
