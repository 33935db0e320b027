import os


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Browser origins allowed to reach the HTTP API and the socket
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',') if o.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Room timer tick interval (seconds)
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    # Idle rooms are dropped after this many seconds. 0 disables.
    ROOM_TTL_SEC = int(os.environ.get('ROOM_TTL_SEC', '0'))
    REAPER_INTERVAL_SEC = int(os.environ.get('REAPER_INTERVAL_SEC', '60'))
    # Optional hardening, both off by default
    REQUIRE_MEMBERSHIP = _flag('REQUIRE_MEMBERSHIP')
    REJECT_OFF_DECK_VOTES = _flag('REJECT_OFF_DECK_VOTES')
    ENABLE_TIMER_IN_TESTS = False
