"""Matchmaking and match services.

The pairing registry and the match engine live here, free of Socket.IO
handler code so they can be constructed in isolation and driven from tests.
"""
