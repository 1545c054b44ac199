"""
Django settings for the nfa_site project.

Only what the NFA simulator app needs: no database-backed apps, no templates.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'insecure-development-key')

DEBUG = os.environ.get('DJANGO_DEBUG', '1') == '1'

ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')

INSTALLED_APPS = [
    'nfa_simulator.apps.NfaSimulatorConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'nfa_site.urls'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

USE_TZ = True

NFA_SIMULATOR = {
    'EPSILON_KEY': os.environ.get('NFA_EPSILON_KEY', ''),
    'DEFINITION_PATH': os.environ.get('NFA_DEFINITION_PATH') or None,
    'EXIT_WORD': 'exit',
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'nfa_simulator': {
            'handlers': ['console'],
            'level': os.environ.get('NFA_LOG_LEVEL', 'WARNING'),
            'propagate': False,
        },
    },
}
