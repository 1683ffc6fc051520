"""
CollabNotes Backend - Realtime Collaborative Note Editing

Presence tracking, room membership and live edit relay for shared notes.

Version: 1.0.0
"""

__version__ = "1.0.0"
