from typing import List

from planning_poker import socketio, store
from planning_poker.models import TimerHandle
from .broadcast import broadcast_closed, broadcast_state
from .state import tick

_reaper_started = False


def schedule_room_timer(app, room_id: str, handle: TimerHandle) -> bool:
    """Start the tick loop for a freshly started room timer.

    - No-ops in TESTING mode unless ENABLE_TIMER_IN_TESTS is set
    - One loop per handle; start_timer only hands out a handle when the
      timer was not already running, so double starts never double-tick
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_TIMER_IN_TESTS'):
        return False
    socketio.start_background_task(run_room_timer, app, room_id, handle)
    return True


def run_room_timer(app, room_id: str, handle: TimerHandle) -> int:
    interval = float(app.config.get('TIMER_TICK_SEC', 1))
    namespace = app.config.get('SOCKETIO_NAMESPACE', '/')
    app.logger.info(f"[timer-loop] room={room_id} interval={interval}s")
    ticks = 0
    while not handle.cancelled:
        socketio.sleep(interval)
        with store.locked(room_id, touch=False) as room:
            if room is None:
                handle.cancel()
                break
            # Stopped, reset or superseded while we slept
            if not tick(room, handle):
                break
            ticks += 1
            broadcast_state(room, namespace)
    app.logger.info(f"[timer-exit] room={room_id} ticks={ticks}")
    return ticks


def reap_idle_rooms(app) -> List[str]:
    namespace = app.config.get('SOCKETIO_NAMESPACE', '/')
    reaped = store.reap()
    for room_id in reaped:
        broadcast_closed(room_id, namespace)
        app.logger.info(f"[reap] room={room_id}")
    return reaped


def _reaper(app):
    interval = int(app.config.get('REAPER_INTERVAL_SEC', 60))
    while True:
        socketio.sleep(interval)
        try:
            reap_idle_rooms(app)
        except Exception:
            app.logger.exception("[reap-error] idle room sweep failed")


def schedule_reaper(app) -> bool:
    """Run the idle-room sweep in the background when a TTL is configured."""
    global _reaper_started
    if app.config.get('TESTING') or not app.config.get('ROOM_TTL_SEC'):
        return False
    if _reaper_started:
        return False
    _reaper_started = True
    app.logger.info(
        f"[reap-set] ttl={app.config.get('ROOM_TTL_SEC')}s interval={app.config.get('REAPER_INTERVAL_SEC', 60)}s"
    )
    socketio.start_background_task(_reaper, app)
    return True
