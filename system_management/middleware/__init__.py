from .system_health import SystemHealthMiddleware

__all__ = [
    'SystemHealthMiddleware',
]
