from flask import Blueprint, jsonify, request
from sqlalchemy import or_
from fan_h2h.models import MatchRecord

matches = Blueprint('matches', __name__)


@matches.route('/history/<string:player_id>', methods=['GET'])
def get_match_history(player_id):
    """
    Returns recorded matches the player took part in, newest first.
    """
    try:
        limit = int(request.args.get('limit', 20))
    except (TypeError, ValueError):
        return jsonify({'error': 'limit must be an integer'}), 400
    limit = max(1, min(100, limit))

    records = (
        MatchRecord.query
        .filter(or_(MatchRecord.player1_id == player_id, MatchRecord.player2_id == player_id))
        .order_by(MatchRecord.created_at.desc(), MatchRecord.id.desc())
        .limit(limit)
        .all()
    )
    return jsonify([r.to_dict() for r in records]), 200
