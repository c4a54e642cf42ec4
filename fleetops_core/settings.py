"""
Django settings for the fleet operations project.

Values are read from the process environment, optionally seeded from an
``env_var.env`` file in the project root.
"""
import os
import sys
import logging
from pathlib import Path

from fleetops_core.env_loader import load_env_from_file, env_int, env_float

BASE_DIR = Path(__file__).resolve().parent.parent

load_env_from_file(os.path.join(BASE_DIR, 'env_var.env'))

# Determine if we're in test mode
TESTING = 'test' in sys.argv or 'pytest' in sys.modules

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY')
if not SECRET_KEY:
    if not TESTING and os.getenv('DJANGO_DEBUG', 'False').lower() != 'true':
        raise ValueError("DJANGO_SECRET_KEY is required. Set the DJANGO_SECRET_KEY environment variable.")
    SECRET_KEY = 'insecure-development-key'
    logging.warning("Using insecure development secret key.")

DEBUG = os.getenv('DJANGO_DEBUG', 'False').lower() == 'true'

ALLOWED_HOSTS = [h for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'django_filters',
    'drf_yasg',
    'fleet',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'fleetops_core.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'fleetops_core.wsgi.application'

# Store I/O is bounded by the driver timeout; a timeout surfaces as a
# TransientStoreError from the fleet core.
FLEET_STORE_TIMEOUT_SECONDS = env_float('FLEET_STORE_TIMEOUT_SECONDS', 5.0)

# SQLite has no row locks, so select_for_update() is a no-op there. Taking the
# write lock at BEGIN serializes units of work instead: a second booking for
# the same vehicle waits for the first to commit and then sees it.
SQLITE_OPTIONS = {
    'timeout': FLEET_STORE_TIMEOUT_SECONDS,
    'transaction_mode': 'IMMEDIATE',
}

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('FLEET_DB_PATH', str(BASE_DIR / 'fleet.sqlite3')),
        'OPTIONS': SQLITE_OPTIONS,
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('FLEET_TIME_ZONE', 'America/Sao_Paulo')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

REST_FRAMEWORK = {
    'DEFAULT_FILTER_BACKENDS': ['django_filters.rest_framework.DjangoFilterBackend'],
    'EXCEPTION_HANDLER': 'fleet.views.exception_handler.fleet_exception_handler',
}

# --- Fleet core settings ---
FLEET_MAINTENANCE_INTERVAL_KM = env_int('FLEET_MAINTENANCE_INTERVAL_KM', 10000)
FLEET_LOW_FUEL_THRESHOLD = env_int('FLEET_LOW_FUEL_THRESHOLD', 25)
FLEET_POINTS_ALERT_THRESHOLD = env_int('FLEET_POINTS_ALERT_THRESHOLD', 20)

# Circulation (plate rotation) policy. Weekdays are Python weekday indexes
# (0 = Monday). Aliases and qualifiers are matched after diacritics are
# stripped and text is case folded.
FLEET_CIRCULATION_POLICY = {
    'city_aliases': ['sao paulo', 'sao paulo capital', 'capital paulista', 'sampa'],
    'state_abbreviations': ['sp'],
    'state_names': ['sao paulo'],
    # Multi-word phrases, so street names such as "Rua do Estado" do not match
    'statewide_qualifiers': [
        'estado de', 'interior de', 'interior do', 'interior paulista',
        'state of', 'statewide', 'state wide',
    ],
    'rotation': {
        0: [1, 2],
        1: [3, 4],
        2: [5, 6],
        3: [7, 8],
        4: [9, 0],
    },
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.getenv('FLEET_LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'fleet': {
            'handlers': ['console'],
            'level': os.getenv('FLEET_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
