"""Match domain services: question selection, scoring, timers and the engine.

Socket handlers and HTTP routes import from here; nothing in this package
touches Flask request state.
"""

from .engine import AnswerRecord, GameManager, Match, MatchPhase, PlayerRef  # noqa: F401
