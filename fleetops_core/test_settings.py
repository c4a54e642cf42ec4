"""
Settings used by the test suite: throwaway SQLite file, quiet logging.
"""
from fleetops_core.settings import *  # noqa: F401,F403

SECRET_KEY = 'dummy-secret-key-for-testing-fleet'
DEBUG = False
TESTING = True

ALLOWED_HOSTS = ['testserver', 'localhost', '127.0.0.1']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'OPTIONS': SQLITE_OPTIONS,
        # File backed, so threads in the concurrency tests share one database
        'TEST': {
            'NAME': str(BASE_DIR / 'test_fleet.sqlite3'),
        },
    }
}

# Fast hashing keeps driver fixtures cheap
PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

FLEET_MAINTENANCE_INTERVAL_KM = 10000
FLEET_LOW_FUEL_THRESHOLD = 25

LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'fleet': {
            'handlers': ['console'],
            'level': 'CRITICAL',
            'propagate': False,
        },
    },
}
