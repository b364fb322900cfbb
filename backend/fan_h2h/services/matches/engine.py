"""Match engine: owns live matches and drives each one through its rounds.

A match moves FORMING -> ROUND_ACTIVE -> ROUND_SETTLED -> (ROUND_ACTIVE |
FINISHED). Every transition is triggered either by a player event or by a
scheduler callback, and every entry point looks the match up first and
returns quietly when it is gone (finished or abandoned). That lookup is
what keeps late timers and late answers harmless.
"""

import enum
import random
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .questions import public_question, select_questions
from .scoring import decide_winner, score_answer


class MatchPhase(enum.Enum):
    FORMING = 'forming'
    ROUND_ACTIVE = 'round_active'
    ROUND_SETTLED = 'round_settled'
    FINISHED = 'finished'


@dataclass
class PlayerRef:
    sid: str
    user: Dict[str, Any]

    @property
    def user_id(self) -> Optional[str]:
        uid = self.user.get('id')
        return str(uid) if uid is not None else None

    @property
    def is_guest(self) -> bool:
        # browser clients send isGuest
        flagged = self.user.get('is_guest') or self.user.get('isGuest')
        return bool(flagged) or self.user_id is None

    def public_profile(self) -> Dict[str, Any]:
        return {k: v for k, v in self.user.items() if k != 'email'}


@dataclass
class AnswerRecord:
    answer_index: int
    is_correct: bool
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {'answer_index': self.answer_index, 'is_correct': self.is_correct, 'score': self.score}


@dataclass
class Match:
    id: str
    players: Dict[str, PlayerRef]
    order: Tuple[str, str]
    questions: List[Dict[str, Any]]
    current_index: int = 0
    scores: Dict[str, int] = field(default_factory=dict)
    answers: Dict[int, Dict[str, AnswerRecord]] = field(default_factory=dict)
    round_started_at: Optional[float] = None
    timer: Any = None
    phase: MatchPhase = MatchPhase.FORMING
    lock: Any = field(default_factory=threading.RLock, repr=False)

    @property
    def current_question(self) -> Optional[Dict[str, Any]]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class GameManager:
    """Creates matches and runs their round state machine.

    Collaborators are injected: ``broadcaster`` (Socket.IO delivery),
    ``scheduler`` (timers and the clock), ``question_source`` (question
    bank) and ``recorder`` (match archive). Timings and question counts
    come from ``app.config``.
    """

    def __init__(self, app, broadcaster, scheduler, question_source, recorder, rng: Optional[random.Random] = None):
        self.app = app
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.question_source = question_source
        self.recorder = recorder
        seed = app.config.get('QUESTION_SEED')
        self.rng = rng or random.Random(seed)
        self.matches: Dict[str, Match] = {}
        self._table_lock = threading.Lock()

    # ---- config helpers ----

    def _cfg(self, key: str, default: int) -> int:
        return int(self.app.config.get(key, default))

    @property
    def round_duration(self) -> int:
        return self._cfg('ROUND_DURATION_SEC', 10)

    # ---- table ----

    def get_match(self, match_id: str) -> Optional[Match]:
        with self._table_lock:
            return self.matches.get(match_id)

    def _pop_match(self, match_id: str) -> Optional[Match]:
        with self._table_lock:
            return self.matches.pop(match_id, None)

    def live_match_count(self) -> int:
        with self._table_lock:
            return len(self.matches)

    def find_match_for(self, sid: str) -> Optional[Match]:
        with self._table_lock:
            for match in self.matches.values():
                if sid in match.players:
                    return match
        return None

    # ---- lifecycle ----

    def create_match(self, player1: PlayerRef, player2: PlayerRef) -> str:
        match_id = str(uuid.uuid4())
        questions = select_questions(
            self.question_source,
            player1.user,
            player2.user,
            target=self._cfg('QUESTIONS_PER_MATCH', 10),
            per_player=self._cfg('AFFINITY_QUESTIONS_PER_PLAYER', 5),
            rng=self.rng,
            logger=self.app.logger,
        )
        match = Match(
            id=match_id,
            players={player1.sid: player1, player2.sid: player2},
            order=(player1.sid, player2.sid),
            questions=questions,
            scores={player1.sid: 0, player2.sid: 0},
        )
        with self._table_lock:
            self.matches[match_id] = match

        self.broadcaster.join(player1.sid, match_id)
        self.broadcaster.join(player2.sid, match_id)
        self.broadcaster.to_player(player1.sid, 'match_found', {'match_id': match_id, 'opponent': player2.public_profile()})
        self.broadcaster.to_player(player2.sid, 'match_found', {'match_id': match_id, 'opponent': player1.public_profile()})
        self.app.logger.info(
            f"[match-created] match={match_id} p1={player1.user_id} p2={player2.user_id} questions={len(questions)}"
        )

        with match.lock:
            match.timer = self.scheduler.call_later(self._cfg('PRE_MATCH_DELAY_SEC', 3), self.start_round, match_id)
        return match_id

    def start_round(self, match_id: str) -> None:
        match = self.get_match(match_id)
        if not match:
            return
        with match.lock:
            if match.phase not in (MatchPhase.FORMING, MatchPhase.ROUND_SETTLED):
                return
            question = match.current_question
            if question is None:
                # Nothing to ask (empty question set): go straight to the result.
                match.phase = MatchPhase.ROUND_SETTLED
                match.timer = self.scheduler.call_later(0, self.finish_match, match_id)
                return
            now = self.scheduler.now()
            match.round_started_at = now
            match.answers[match.current_index] = {}
            match.phase = MatchPhase.ROUND_ACTIVE
            self.broadcaster.to_match(match_id, 'new_question', {
                'question': public_question(question),
                'index': match.current_index + 1,
                'total': len(match.questions),
                'deadline': now + self.round_duration,
            })
            match.timer = self.scheduler.call_later(
                self.round_duration + self._cfg('ROUND_GRACE_SEC', 1),
                self._on_round_timeout, match_id, match.current_index,
            )
            self.app.logger.info(f"[round-start] match={match_id} round={match.current_index + 1}/{len(match.questions)}")

    def submit_answer(self, match_id: str, sid: str, answer_index) -> Optional[AnswerRecord]:
        """Record a player's answer for the current round.

        Returns the recorded answer, or None when nothing was recorded
        (unknown match, not a player, no open round, already answered).
        """
        match = self.get_match(match_id)
        if not match:
            return None
        with match.lock:
            if sid not in match.players or match.phase != MatchPhase.ROUND_ACTIVE:
                return None
            round_answers = match.answers.setdefault(match.current_index, {})
            if sid in round_answers:
                return None
            question = match.current_question
            elapsed = self.scheduler.now() - (match.round_started_at or self.scheduler.now())
            is_correct = answer_index == question['correct_index']
            points = score_answer(is_correct, elapsed, self.round_duration)
            match.scores[sid] += points
            record = AnswerRecord(answer_index=answer_index, is_correct=is_correct, score=points)
            round_answers[sid] = record

            if len(round_answers) == len(match.players):
                match.cancel_timer()
                self._settle_locked(match)
            return record

    def _on_round_timeout(self, match_id: str, round_index: int) -> None:
        match = self.get_match(match_id)
        if not match:
            return
        with match.lock:
            if match.phase != MatchPhase.ROUND_ACTIVE or match.current_index != round_index:
                return
            self.app.logger.info(
                f"[round-timeout] match={match_id} round={round_index + 1} answered={len(match.answers.get(round_index, {}))}"
            )
            match.timer = None
            self._settle_locked(match)

    def settle_round(self, match_id: str) -> None:
        match = self.get_match(match_id)
        if not match:
            return
        with match.lock:
            if match.phase != MatchPhase.ROUND_ACTIVE:
                return
            match.cancel_timer()
            self._settle_locked(match)

    def _settle_locked(self, match: Match) -> None:
        question = match.current_question
        round_answers = match.answers.get(match.current_index, {})
        match.phase = MatchPhase.ROUND_SETTLED
        self.broadcaster.to_match(match.id, 'question_result', {
            'correct_index': question['correct_index'],
            'scores': dict(match.scores),
            'answers': {sid: rec.to_dict() for sid, rec in round_answers.items()},
        })
        self.app.logger.info(f"[round-settle] match={match.id} round={match.current_index + 1} scores={match.scores}")
        match.current_index += 1
        delay = self._cfg('RESULT_DELAY_SEC', 3)
        if match.current_index < len(match.questions):
            match.timer = self.scheduler.call_later(delay, self.start_round, match.id)
        else:
            match.timer = self.scheduler.call_later(delay, self.finish_match, match.id)

    def finish_match(self, match_id: str) -> None:
        match = self.get_match(match_id)
        if not match:
            return
        with match.lock:
            if match.phase == MatchPhase.FINISHED:
                return
            match.phase = MatchPhase.FINISHED
            match.timer = None
            p1 = match.players[match.order[0]]
            p2 = match.players[match.order[1]]
            p1_score = match.scores[p1.sid]
            p2_score = match.scores[p2.sid]
            winner_sid = decide_winner({p1.sid: p1_score, p2.sid: p2_score})
            winner_id = match.players[winner_sid].user_id if winner_sid else None
            scores = dict(match.scores)
            questions = list(match.questions)

        if p1.is_guest or p2.is_guest:
            self.app.logger.info(f"[match-save-skip] match={match_id} guest player, not saving")
        else:
            saved = self.recorder.record_match(p1.user_id, p2.user_id, questions, p1_score, p2_score, winner_id,
                                               match_id=match_id)
            if not saved:
                self.app.logger.warning(f"[match-save-failed] match={match_id}")

        self.broadcaster.to_match(match_id, 'game_over', {
            'scores': scores,
            'winner_id': winner_id,
            'winner_sid': winner_sid,
            'draw': winner_sid is None,
        })
        self._pop_match(match_id)
        self.broadcaster.close(match_id)
        self.app.logger.info(f"[match-finish] match={match_id} scores={scores} winner={winner_id}")

    def handle_disconnect(self, sid: str) -> Optional[str]:
        """Abandon the match containing ``sid``, if any. Returns its id."""
        match = self.find_match_for(sid)
        if not match:
            return None
        with match.lock:
            # game_over is already on its way; finish_match owns cleanup
            if match.phase == MatchPhase.FINISHED:
                return None
            if self._pop_match(match.id) is None:
                return None
            match.cancel_timer()
            match.phase = MatchPhase.FINISHED
        self.broadcaster.to_match(match.id, 'opponent_disconnected', {})
        self.broadcaster.close(match.id)
        self.app.logger.info(f"[match-abandoned] match={match.id} disconnected={sid}")
        return match.id
