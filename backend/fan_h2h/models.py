from fan_h2h import db
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc)


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.String(64), primary_key=True)
    question = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False)  # list of 4 strings
    correct_index = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    clubs = db.relationship('QuestionClub', back_populates='question', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'options': list(self.options or []),
            'correct_index': self.correct_index,
        }


class QuestionClub(db.Model):
    """Tags a question as relevant to a club (the player affinity key)."""
    __tablename__ = 'question_club'
    question_id = db.Column(db.String(64), db.ForeignKey('question.id'), primary_key=True)
    club_id = db.Column(db.String(64), primary_key=True, index=True)
    question = db.relationship('Question', back_populates='clubs')


class MatchRecord(db.Model):
    __tablename__ = 'match_record'
    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.String(64), unique=True, nullable=True)
    player1_id = db.Column(db.String(64), nullable=False, index=True)
    player2_id = db.Column(db.String(64), nullable=False, index=True)
    questions = db.Column(db.JSON, nullable=False)
    p1_score = db.Column(db.Integer, nullable=False, default=0)
    p2_score = db.Column(db.Integer, nullable=False, default=0)
    winner_id = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'match_id': self.match_id,
            'player1_id': self.player1_id,
            'player2_id': self.player2_id,
            'questions': self.questions,
            'p1_score': self.p1_score,
            'p2_score': self.p2_score,
            'winner_id': self.winner_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
