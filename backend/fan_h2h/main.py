from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'fan_h2h backend is running'})


@main.route('/health')
def health():
    state = current_app.extensions['fan_h2h']
    return jsonify({
        'status': 'ok',
        'queue_size': state.matchmaking.queue_size(),
        'open_rooms': len(state.matchmaking.live_rooms()),
        'live_matches': state.games.live_match_count(),
    })
