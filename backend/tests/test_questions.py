import random

import pytest

from fan_h2h import db
from fan_h2h.models import Question
from fan_h2h.services.errors import UpstreamUnavailable
from fan_h2h.services.matches.questions import (
    DEFAULT_QUESTIONS,
    QuestionSource,
    public_question,
    seed_default_questions,
    select_questions,
)
from conftest import StaticQuestionSource


def _q(qid, correct=0):
    return {'id': qid, 'question': f'Question {qid}?', 'options': ['a', 'b', 'c', 'd'], 'correct_index': correct}


def test_interleaves_both_players_club_pools():
    source = StaticQuestionSource(by_club={
        'ajax': [_q('a1'), _q('a2'), _q('a3')],
        'psg': [_q('p1'), _q('p2'), _q('p3')],
    })
    selected = select_questions(source, {'club_id': 'ajax'}, {'club_id': 'psg'}, target=4, per_player=3,
                                rng=random.Random(0))
    # a1 p1 a2 p2 survive the cut before shuffling
    assert {q['id'] for q in selected} == {'a1', 'p1', 'a2', 'p2'}


def test_tops_up_from_whole_bank_without_duplicates():
    shared = _q('shared')
    source = StaticQuestionSource(
        by_club={'ajax': [shared, _q('a1')], 'psg': [shared]},
        all_questions=[shared, _q('a1'), _q('x1'), _q('x2')],
    )
    selected = select_questions(source, {'club_id': 'ajax'}, {'club_id': 'psg'}, target=4, per_player=5,
                                rng=random.Random(3))
    ids = [q['id'] for q in selected]
    assert len(ids) == len(set(ids)) == 4
    assert set(ids) == {'shared', 'a1', 'x1', 'x2'}


def test_falls_back_to_built_in_set_when_source_is_down():
    source = StaticQuestionSource(fail_affinity=True, fail_all=True)
    selected = select_questions(source, {'club_id': 'ajax'}, {}, target=5, per_player=5, rng=random.Random(1))
    builtin_ids = {q['id'] for q in DEFAULT_QUESTIONS}
    assert len(selected) == 5
    assert {q['id'] for q in selected} <= builtin_ids


def test_short_bank_is_topped_up_from_built_in_set():
    source = StaticQuestionSource(all_questions=[_q('x1')])
    selected = select_questions(source, {}, {}, target=4, per_player=5, rng=random.Random(1))
    ids = [q['id'] for q in selected]
    assert 'x1' in ids
    assert len(ids) == 4


def test_accepts_fewer_questions_than_target():
    source = StaticQuestionSource(fail_all=True)
    selected = select_questions(source, {}, {}, target=10, per_player=5, rng=random.Random(1))
    assert len(selected) == len(DEFAULT_QUESTIONS)


def test_selection_is_deterministic_for_a_seed():
    source = StaticQuestionSource(all_questions=[_q(f'x{i}') for i in range(20)])
    first = select_questions(source, {}, {}, target=10, per_player=5, rng=random.Random(99))
    second = select_questions(source, {}, {}, target=10, per_player=5, rng=random.Random(99))
    assert [q['id'] for q in first] == [q['id'] for q in second]


def test_public_question_hides_the_answer():
    assert public_question(_q('z', correct=3)) == {'id': 'z', 'question': 'Question z?', 'options': ['a', 'b', 'c', 'd']}


def test_seed_is_idempotent(flask_app):
    assert seed_default_questions() == len(DEFAULT_QUESTIONS)
    assert seed_default_questions() == 0
    assert Question.query.count() == len(DEFAULT_QUESTIONS)


def test_question_source_reads_club_and_full_bank(flask_app):
    seed_default_questions()
    source = QuestionSource(flask_app)

    barca = source.fetch_by_affinity('barcelona', 5)
    assert {q['id'] for q in barca} == {'q1', 'q6'}
    assert source.fetch_by_affinity('barcelona', 1)[0]['id'] in {'q1', 'q6'}
    assert source.fetch_by_affinity(None, 5) == []
    assert source.fetch_by_affinity('nobody-fc', 5) == []
    assert len(source.fetch_all()) == len(DEFAULT_QUESTIONS)


def test_question_source_reports_unavailable_bank(flask_app):
    db.drop_all()
    source = QuestionSource(flask_app)
    with pytest.raises(UpstreamUnavailable):
        source.fetch_all()
    with pytest.raises(UpstreamUnavailable):
        source.fetch_by_affinity('ajax', 3)


def test_seeded_club_questions_lead_the_selection(flask_app):
    seed_default_questions()
    selected = select_questions(QuestionSource(flask_app), {'club_id': 'ajax'}, {'club_id': 'psg'},
                                target=3, per_player=2, rng=random.Random(5))
    ids = {q['id'] for q in selected}
    assert {'q7', 'q3'} <= ids
    assert len(ids) == 3
