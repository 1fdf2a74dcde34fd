"""
Engine Configuration

Module-level defaults for the resolution and aggregation engine.
Each value can be overridden through an environment variable of the same name.
"""

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Matching: run tier 5 (name-only substring match, weight ignored)
ALLOW_FLEXIBLE_FALLBACK = _env_bool('ALLOW_FLEXIBLE_FALLBACK', True)

# Aggregation period: "day" | "week" | "month" | "all"
DEFAULT_GRANULARITY = os.environ.get('DEFAULT_GRANULARITY', 'month')

# Orders are stored in UTC; business days are Buenos Aires local time
BUSINESS_UTC_OFFSET_HOURS = _env_int('BUSINESS_UTC_OFFSET_HOURS', -3)

# Order statuses that reports ignore
EXCLUDED_ORDER_STATUSES = {'cancelled'}

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

API_HOST = os.environ.get('API_HOST', '0.0.0.0')
API_PORT = _env_int('API_PORT', 8000)
