import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///fan_h2h.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    PORT = int(os.environ.get('PORT', '3001'))
    # Match timings (seconds)
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '10'))
    ROUND_GRACE_SEC = int(os.environ.get('ROUND_GRACE_SEC', '1'))
    PRE_MATCH_DELAY_SEC = int(os.environ.get('PRE_MATCH_DELAY_SEC', '3'))
    RESULT_DELAY_SEC = int(os.environ.get('RESULT_DELAY_SEC', '3'))
    # Question selection
    QUESTIONS_PER_MATCH = int(os.environ.get('QUESTIONS_PER_MATCH', '10'))
    AFFINITY_QUESTIONS_PER_PLAYER = int(os.environ.get('AFFINITY_QUESTIONS_PER_PLAYER', '5'))
    # Optional: fixed seed for question shuffling. Unset means random.
    QUESTION_SEED = int(os.environ['QUESTION_SEED']) if os.environ.get('QUESTION_SEED') else None
    # Private rooms
    ROOM_TTL_SEC = int(os.environ.get('ROOM_TTL_SEC', '300'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
