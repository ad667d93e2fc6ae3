"""
Gateway: downstream service registry, health checks and request forwarding.

Health results are kept in the cache so every worker sees the same view.
A result older than twice the check interval reads as ``unknown``.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import requests
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from clinic.exceptions import ServiceUnavailable

logger = logging.getLogger(__name__)

# URL prefix under /api/ -> registered service name
PREFIX_ROUTES = {
    'auth': 'auth',
    'doctors': 'doctors',
    'reviews': 'doctors',
    'patients': 'patients',
    'appointments': 'appointments',
    'departments': 'departments',
    'specialties': 'departments',
    'rooms': 'departments',
    'medical-records': 'medical-records',
    'prescriptions': 'prescriptions',
    'medications': 'prescriptions',
    'billing': 'billing',
    'payments': 'billing',
    'notifications': 'notifications',
}

FORWARDED_HEADERS = ('Authorization', 'Content-Type', 'Accept', 'X-Request-ID')
DOCTOR_ONLY_SERVICES = ('doctors',)


@dataclass
class ServiceStatus:
    name: str
    url: str
    status: str = 'unknown'
    last_check: Optional[datetime] = None
    response_time_ms: Optional[int] = None
    error: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            'name': self.name,
            'url': self.url,
            'status': self.status,
            'last_check': self.last_check.isoformat() if self.last_check else None,
            'response_time_ms': self.response_time_ms,
            'error': self.error,
        }


def _health_key(name: str) -> str:
    return f'gateway:health:{name}'


def services() -> dict[str, str]:
    return dict(settings.GATEWAY_SERVICES)


def resolve(prefix: str) -> Optional[str]:
    name = PREFIX_ROUTES.get(prefix)
    return name if name in services() else None


def status_of(name: str, now: Optional[datetime] = None) -> ServiceStatus:
    url = services()[name]
    entry = ServiceStatus(name=name, url=url)
    cached = cache.get(_health_key(name))
    if not cached:
        return entry
    entry.last_check = cached['last_check']
    entry.response_time_ms = cached.get('response_time_ms')
    entry.error = cached.get('error')
    now = now or timezone.now()
    stale_after = timedelta(seconds=settings.GATEWAY_HEALTH_INTERVAL * 2)
    entry.status = 'unknown' if now - entry.last_check > stale_after else cached['status']
    return entry


def check(name: str) -> ServiceStatus:
    url = services()[name]
    started = time.monotonic()
    error = None
    try:
        resp = requests.get(f'{url.rstrip("/")}/health', timeout=settings.GATEWAY_HEALTH_TIMEOUT)
        status = 'healthy' if 200 <= resp.status_code < 300 else 'unhealthy'
        if status == 'unhealthy':
            error = f'HTTP {resp.status_code}'
    except requests.RequestException as e:
        status = 'unhealthy'
        error = str(e)
    elapsed = int((time.monotonic() - started) * 1000)
    result = {'status': status, 'last_check': timezone.now(), 'response_time_ms': elapsed, 'error': error}
    cache.set(_health_key(name), result, settings.GATEWAY_HEALTH_INTERVAL * 4)
    if status != 'healthy':
        logger.warning("service %s unhealthy: %s", name, error)
    return status_of(name)


def check_all() -> list[ServiceStatus]:
    return [check(name) for name in services()]


def snapshot() -> list[dict]:
    return [status_of(name).as_dict() for name in services()]


def ensure_routable(name: str) -> None:
    if settings.DOCTOR_ONLY_MODE and name not in DOCTOR_ONLY_SERVICES:
        raise ServiceUnavailable(
            f'Service {name} is disabled in doctor-only mode',
            details={'mode': 'doctor-only-development', 'availableServices': list(DOCTOR_ONLY_SERVICES)},
        )


def forward(name: str, prefix: str, path: str, *, method: str, query: str = '', body: bytes = b'',
            headers: Optional[dict] = None) -> requests.Response:
    ensure_routable(name)
    url = f'{services()[name].rstrip("/")}/api/{prefix}'
    if path:
        url = f'{url}/{path.lstrip("/")}'
    if query:
        url = f'{url}?{query}'
    sent = {k: v for k, v in (headers or {}).items() if k in FORWARDED_HEADERS and v}
    try:
        return requests.request(method, url, data=body or None, headers=sent,
                                timeout=settings.GATEWAY_PROXY_TIMEOUT)
    except requests.RequestException as e:
        logger.error("proxy to %s failed: %s", name, e)
        raise ServiceUnavailable(f'Service {name} is unavailable', details={'service': name})
