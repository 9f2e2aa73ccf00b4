"""Session and timer constants shared by the core and server layers."""

DEFAULT_TOTAL_TIME_SECONDS: int = 300
TICK_INTERVAL_SECONDS: float = 1.0
OBSERVER_QUEUE_LIMIT: int = 1000

ROLE_STUDENT: str = "student"
ROLE_TEACHER: str = "teacher"
ROLE_ADMIN: str = "admin"

MONITOR_ROLES: frozenset[str] = frozenset({ROLE_TEACHER, ROLE_ADMIN})
MASS_OPERATION_ROLES: frozenset[str] = frozenset({ROLE_ADMIN})
