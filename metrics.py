"""
metrics.py - Application metrics for monitoring
"""
from prometheus_client import Counter, Histogram, generate_latest
from functools import wraps
import time

# Metrics definitions
request_count = Counter(
    'nlp_server_requests_total',
    'Total requests',
    ['method', 'endpoint', 'status']
)

request_duration = Histogram(
    'nlp_server_request_duration_seconds',
    'Request duration',
    ['method', 'endpoint']
)

command_duration = Histogram(
    'nlp_server_command_duration_seconds',
    'Pipeline command duration',
    ['command']
)

command_errors = Counter(
    'nlp_server_command_errors_total',
    'Pipeline command failures by error kind',
    ['command', 'kind']
)


def track_request(method: str, endpoint: str):
    """Decorator to track request metrics"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.time()
            status = 200
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                status = getattr(e, "status_code", 500)
                raise
            finally:
                duration = time.time() - start
                request_count.labels(method, endpoint, status).inc()
                request_duration.labels(method, endpoint).observe(duration)
        return wrapper
    return decorator


def track_command(command: str):
    """Decorator to time a pipeline command and count its failures"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.time()
            try:
                return func(*args, **kwargs)
            except Exception as e:
                command_errors.labels(command, getattr(e, "kind", type(e).__name__)).inc()
                raise
            finally:
                command_duration.labels(command).observe(time.time() - start)
        return wrapper
    return decorator


def get_metrics():
    """Get Prometheus metrics"""
    return generate_latest()
