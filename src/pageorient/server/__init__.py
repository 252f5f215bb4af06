from pageorient.server.app import HEALTH_PATH, MIN_LIKELIHOOD, ORIENTATION_PATH, create_app

__all__ = [
    "HEALTH_PATH",
    "MIN_LIKELIHOOD",
    "ORIENTATION_PATH",
    "create_app",
]
