from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from fan_h2h import db
from fan_h2h.models import MatchRecord


class MatchRecorder:
    """Writes finished matches to the match_record table."""

    def __init__(self, app):
        self.app = app

    def record_match(self, player1_id: str, player2_id: str, questions: List[Dict[str, Any]],
                     p1_score: int, p2_score: int, winner_id: Optional[str],
                     match_id: Optional[str] = None) -> bool:
        with self.app.app_context():
            try:
                record = MatchRecord(
                    match_id=match_id,
                    player1_id=str(player1_id),
                    player2_id=str(player2_id),
                    questions=questions,
                    p1_score=p1_score,
                    p2_score=p2_score,
                    winner_id=str(winner_id) if winner_id is not None else None,
                )
                db.session.add(record)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                self.app.logger.error(f"[match-save-error] match={match_id} error={exc}")
                return False
        return True
