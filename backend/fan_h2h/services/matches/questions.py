import random
from itertools import zip_longest
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from fan_h2h import db
from fan_h2h.models import Question, QuestionClub
from fan_h2h.services.errors import UpstreamUnavailable


# Built-in set used when the question bank is unreachable or too small.
# The club tags are what `flask seed-questions` writes to question_club.
DEFAULT_QUESTIONS: List[Dict[str, Any]] = [
    {'id': 'q1', 'question': 'Which club has more UCL titles?', 'options': ['FC Barcelona', 'Real Madrid', 'AC Milan', 'Bayern Munich'], 'correct_index': 1, 'clubs': ['real-madrid', 'barcelona']},
    {'id': 'q2', 'question': 'Which league is Arsenal in?', 'options': ['La Liga', 'Bundesliga', 'Premier League', 'Serie A'], 'correct_index': 2, 'clubs': ['arsenal']},
    {'id': 'q3', 'question': 'PSG home city is?', 'options': ['Madrid', 'Paris', 'Rome', 'Munich'], 'correct_index': 1, 'clubs': ['psg']},
    {'id': 'q4', 'question': 'Der Klassiker is between?', 'options': ['Ajax vs PSV', 'Juventus vs Inter', 'Bayern vs Dortmund', 'Chelsea vs Arsenal'], 'correct_index': 2, 'clubs': ['bayern', 'dortmund']},
    {'id': 'q5', 'question': 'Which club is nicknamed Rossoneri?', 'options': ['AC Milan', 'Inter Milan', 'Juventus', 'Napoli'], 'correct_index': 0, 'clubs': ['ac-milan']},
    {'id': 'q6', 'question': 'FC Barcelona plays at?', 'options': ['Allianz Arena', 'Camp Nou', 'San Siro', 'Anfield'], 'correct_index': 1, 'clubs': ['barcelona']},
    {'id': 'q7', 'question': 'Which club is from Amsterdam?', 'options': ['Ajax', 'PSV', 'Feyenoord', 'AZ'], 'correct_index': 0, 'clubs': ['ajax']},
]


def as_question(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': record['id'],
        'question': record['question'],
        'options': list(record['options']),
        'correct_index': int(record['correct_index']),
    }


def public_question(question: Dict[str, Any]) -> Dict[str, Any]:
    """The question as sent to players, without the answer."""
    return {'id': question['id'], 'question': question['question'], 'options': list(question['options'])}


class QuestionSource:
    """Reads questions from the question bank tables."""

    def __init__(self, app):
        self.app = app

    def fetch_by_affinity(self, club_id: Optional[str], count: int) -> List[Dict[str, Any]]:
        if not club_id or count <= 0:
            return []
        with self.app.app_context():
            try:
                rows = (
                    Question.query.join(QuestionClub)
                    .filter(QuestionClub.club_id == str(club_id))
                    .order_by(db.func.random())
                    .limit(count)
                    .all()
                )
                return [q.to_dict() for q in rows]
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise UpstreamUnavailable(f'club questions for {club_id}: {exc}') from exc

    def fetch_all(self) -> List[Dict[str, Any]]:
        with self.app.app_context():
            try:
                return [q.to_dict() for q in Question.query.all()]
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise UpstreamUnavailable(f'question bank: {exc}') from exc


def _add_unique(selected: List[Dict[str, Any]], seen: set, candidates: Iterable[Optional[Dict[str, Any]]], limit: int) -> None:
    for q in candidates:
        if len(selected) >= limit:
            return
        if not q or q['id'] in seen:
            continue
        seen.add(q['id'])
        selected.append(as_question(q))


def select_questions(source, user1: Dict[str, Any], user2: Dict[str, Any], target: int,
                     per_player: int, rng: random.Random, logger=None) -> List[Dict[str, Any]]:
    """Build the question set for a match.

    Preference order: each player's club questions interleaved, then the
    whole bank, then the built-in set. Ids are unique at every stage. The
    result is shuffled and may be shorter than ``target``.
    """
    selected: List[Dict[str, Any]] = []
    seen: set = set()

    pools = []
    for user in (user1, user2):
        club_id = (user or {}).get('club_id')
        try:
            pools.append(source.fetch_by_affinity(club_id, per_player))
        except UpstreamUnavailable as exc:
            if logger:
                logger.warning(f"[question-source-error] stage=affinity club={club_id} error={exc}")
            pools.append([])
    _add_unique(selected, seen, (q for pair in zip_longest(*pools) for q in pair), target)

    if len(selected) < target:
        try:
            extras = [q for q in source.fetch_all() if q and q['id'] not in seen]
            _add_unique(selected, seen, rng.sample(extras, min(len(extras), target - len(selected))), target)
        except UpstreamUnavailable as exc:
            if logger:
                logger.warning(f"[question-source-error] stage=all error={exc}")

    if len(selected) < target:
        fallback = [q for q in DEFAULT_QUESTIONS if q['id'] not in seen]
        _add_unique(selected, seen, rng.sample(fallback, min(len(fallback), target - len(selected))), target)

    rng.shuffle(selected)
    return selected[:target]


def seed_default_questions() -> int:
    """Insert the built-in questions and their club tags. Needs an app context.

    Existing ids are left untouched. Returns how many questions were added.
    """
    added = 0
    for record in DEFAULT_QUESTIONS:
        if db.session.get(Question, record['id']) is not None:
            continue
        question = Question(**as_question(record))
        question.clubs = [QuestionClub(club_id=club) for club in record.get('clubs', [])]
        db.session.add(question)
        added += 1
    db.session.commit()
    return added
