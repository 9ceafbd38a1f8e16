import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of origins allowed to open the host/controller pages
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
    ).split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # How often the tick worker wakes up and pushes a frame to the host (per second).
    # Simulation steps are fixed at 60 Hz regardless of this value.
    FRAME_RATE = int(os.environ.get('FRAME_RATE', '30'))
    # Upper bound on simulation steps replayed in one wake after a stall
    MAX_CATCHUP_STEPS = int(os.environ.get('MAX_CATCHUP_STEPS', '10'))
    # 1 enforces a single controller per room; inputs are last-write-wins otherwise
    MAX_CONTROLLERS_PER_ROOM = int(os.environ.get('MAX_CONTROLLERS_PER_ROOM', '4'))
    # Optional: fixed seed for spawn randomness. Unset means a fresh seed per session.
    SIMULATION_SEED = os.environ.get('SIMULATION_SEED')
    # Optional: heartbeat interval for tick worker logs (sec). 0 disables.
    TICK_HEARTBEAT_SEC = int(os.environ.get('TICK_HEARTBEAT_SEC', '0'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
