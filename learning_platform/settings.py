import pymysql
pymysql.install_as_MySQLdb()

"""
Django settings for learning_platform project.

Environment-driven configuration for the platform and its system
management subsystem (health checks, maintenance tasks, backups).
"""

import os
import sys
from pathlib import Path
from datetime import timedelta
from celery.schedules import crontab
from django.core.management.utils import get_random_secret_key
from decouple import config, Csv
import logging.config

# ==================== BASE CONFIGURATION ====================
BASE_DIR = Path(__file__).resolve().parent.parent

# ==================== ENVIRONMENT DETECTION ====================
ENVIRONMENT = config('DJANGO_ENVIRONMENT', default='development')
IS_PRODUCTION = ENVIRONMENT == 'production'
IS_STAGING = ENVIRONMENT == 'staging'
IS_DEVELOPMENT = ENVIRONMENT == 'development'
IS_TESTING = (
    'test' in sys.argv
    or 'pytest' in sys.modules
    or os.path.basename(sys.argv[0]).startswith('pytest')
)

# ==================== SECURITY SETTINGS ====================
SECRET_KEY = config('SECRET_KEY', default=get_random_secret_key())
DEBUG = config('DEBUG', default=not IS_PRODUCTION, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,::1,testserver', cast=Csv())

# ==================== APPLICATION DEFINITION ====================
DJANGO_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'django.contrib.humanize',
]

THIRD_PARTY_APPS = [
    'django_celery_beat',
    'django_celery_results',
]

LOCAL_APPS = [
    'system_management',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# ==================== MIDDLEWARE CONFIGURATION ====================
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'system_management.middleware.SystemHealthMiddleware',
]

# ==================== URL CONFIGURATION ====================
ROOT_URLCONF = 'learning_platform.urls'
ASGI_APPLICATION = 'learning_platform.asgi.application'
WSGI_APPLICATION = 'learning_platform.wsgi.application'

# ==================== DATABASE CONFIGURATION ====================
DB_ENGINE = config('DB_ENGINE', default='sqlite')

if DB_ENGINE == 'mysql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.mysql',
            'NAME': config('DB_NAME', default='learning_platform'),
            'USER': config('DB_USER', default='platform_user'),
            'PASSWORD': config('DB_PASSWORD', default=''),
            'HOST': config('DB_HOST', default='localhost'),
            'PORT': config('DB_PORT', default='3306'),
            'OPTIONS': {
                'init_command': "SET sql_mode='STRICT_TRANS_TABLES'",
                'charset': 'utf8mb4',
                'connect_timeout': 60,
            },
            'CONN_MAX_AGE': 60,
        }
    }
elif DB_ENGINE == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': config('DB_NAME', default='learning_platform'),
            'USER': config('DB_USER', default='platform_user'),
            'PASSWORD': config('DB_PASSWORD', default=''),
            'HOST': config('DB_HOST', default='localhost'),
            'PORT': config('DB_PORT', default='5432'),
            'CONN_MAX_AGE': 60,
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / config('DB_NAME', default='db.sqlite3'),
            'OPTIONS': {
                'timeout': 30,
            }
        }
    }

# ==================== TEMPLATES CONFIGURATION ====================
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [
            BASE_DIR / 'templates',
        ],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
                'system_management.context_processors.system_health',
            ],
        },
    },
]

# ==================== PASSWORD VALIDATION ====================
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# ==================== INTERNATIONALIZATION ====================
LANGUAGE_CODE = config('LANGUAGE_CODE', default='en-us')
TIME_ZONE = config('TIME_ZONE', default='UTC')
USE_I18N = True
USE_TZ = True

# ==================== STATIC / MEDIA FILES ====================
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / 'media'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LOGIN_URL = '/admin/login/'

# ==================== SESSION CONFIGURATION ====================
SESSION_ENGINE = 'django.contrib.sessions.backends.db'
SESSION_COOKIE_AGE = config('SESSION_COOKIE_AGE', default=1209600, cast=int)
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = 'Lax'
CSRF_COOKIE_HTTPONLY = True

if IS_PRODUCTION or IS_STAGING:
    SECURE_SSL_REDIRECT = True
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# ==================== EMAIL CONFIGURATION ====================
if IS_TESTING:
    EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
elif IS_DEVELOPMENT:
    EMAIL_BACKEND = config('EMAIL_BACKEND', default='django.core.mail.backends.console.EmailBackend')
else:
    EMAIL_BACKEND = config('EMAIL_BACKEND', default='django.core.mail.backends.smtp.EmailBackend')

EMAIL_HOST = config('EMAIL_HOST', default='localhost')
EMAIL_PORT = config('EMAIL_PORT', default=587, cast=int)
EMAIL_HOST_USER = config('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = config('EMAIL_HOST_PASSWORD', default='')
EMAIL_USE_TLS = config('EMAIL_USE_TLS', default=True, cast=bool)
DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default='noreply@learning-platform.local')
SERVER_EMAIL = config('SERVER_EMAIL', default='admin@learning-platform.local')

# ==================== CACHE CONFIGURATION ====================
REDIS_URL = config('REDIS_URL', default='')

if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
                "IGNORE_EXCEPTIONS": True,
                "SOCKET_CONNECT_TIMEOUT": 5,
                "SOCKET_TIMEOUT": 5,
            },
            "KEY_PREFIX": "learning_platform",
            "TIMEOUT": 3600,
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "learning-platform-cache",
        }
    }

# ==================== CELERY CONFIGURATION ====================
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default=REDIS_URL or 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = 'django-db'
CELERY_CACHE_BACKEND = 'django-cache'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_ENABLE_UTC = True
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 60 * 60
CELERY_TASK_SOFT_TIME_LIMIT = 55 * 60
CELERY_RESULT_EXPIRES = timedelta(days=1)
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_ACKS_LATE = True

CELERY_TASK_ROUTES = {
    'system_management.tasks.*': {'queue': 'system'},
}

# Celery Beat Schedule
CELERY_BEAT_SCHEDULE = {
    'system-health-check': {
        'task': 'system_management.tasks.system_health_check',
        'schedule': crontab(minute='*/15'),
        'options': {'expires': 900},
    },
    'auto-backup': {
        # Hourly tick; the task itself decides whether the configured
        # daily/weekly/monthly window matches.
        'task': 'system_management.tasks.auto_backup',
        'schedule': crontab(minute=0),
        'options': {'expires': 3600},
    },
    'cleanup-old-logs': {
        'task': 'system_management.tasks.cleanup_old_logs',
        'schedule': crontab(hour=3, minute=0, day_of_week=0),
        'options': {'expires': 86400},
    },
    'optimize-database': {
        'task': 'system_management.tasks.optimize_database',
        'schedule': crontab(hour=4, minute=0, day_of_month='1'),
        'options': {'expires': 86400},
    },
}

# ==================== LOGGING CONFIGURATION ====================
LOGS_DIR = Path(config('LOGS_DIR', default=str(BASE_DIR / 'logs')))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {asctime} {name} {message}',
            'style': '{',
        },
    },
    'filters': {
        'require_debug_false': {
            '()': 'django.utils.log.RequireDebugFalse',
        },
    },
    'handlers': {
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
        'file': {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOGS_DIR / 'django.log',
            'maxBytes': 1024 * 1024 * 10,
            'backupCount': 5,
            'formatter': 'verbose',
        },
        'error_file': {
            'level': 'ERROR',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOGS_DIR / 'errors.log',
            'maxBytes': 1024 * 1024 * 10,
            'backupCount': 5,
            'formatter': 'verbose',
        },
        'mail_admins': {
            'level': 'ERROR',
            'filters': ['require_debug_false'],
            'class': 'django.utils.log.AdminEmailHandler',
            'include_html': False,
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
        'django.request': {
            'handlers': ['console', 'error_file', 'mail_admins'],
            'level': 'ERROR',
            'propagate': False,
        },
        'system_management': {
            'handlers': ['console', 'file', 'error_file'],
            'level': 'DEBUG' if DEBUG else 'INFO',
            'propagate': False,
        },
        'celery': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': 'WARNING',
    },
}

# ==================== SYSTEM MANAGEMENT ====================
PLATFORM_NAME = config('PLATFORM_NAME', default='Learning Platform')

SYSTEM_ADMIN_ROLE = config('SYSTEM_ADMIN_ROLE', default='admin')

SYSTEM_BACKUP_DIR = Path(config('SYSTEM_BACKUP_DIR', default=str(BASE_DIR / 'backups')))
SYSTEM_BACKUP_DUMP_TIMEOUT = config('SYSTEM_BACKUP_DUMP_TIMEOUT', default=1800, cast=int)

# Archive prefix -> directory. Missing directories are skipped.
# 'app' includes the schema migrations under system_management/migrations.
SYSTEM_BACKUP_SOURCES = {
    'app': BASE_DIR / 'system_management',
    'config': BASE_DIR / 'learning_platform',
    'templates': BASE_DIR / 'templates',
}

SYSTEM_BACKUP_DEFAULTS = {
    'auto_backup_enabled': config('SYSTEM_AUTO_BACKUP_ENABLED', default=False, cast=bool),
    'auto_backup_schedule': config('SYSTEM_AUTO_BACKUP_SCHEDULE', default='daily'),
    'retention_days': config('SYSTEM_BACKUP_RETENTION_DAYS', default=30, cast=int),
}

# Failure of any of these probes forces overall status to critical.
SYSTEM_HEALTH_CRITICAL_CHECKS = config(
    'SYSTEM_HEALTH_CRITICAL_CHECKS', default='database,permissions', cast=Csv()
)
SYSTEM_HEALTH_MIN_FREE_DISK = config('SYSTEM_HEALTH_MIN_FREE_DISK', default='1GB')
SYSTEM_HEALTH_MAX_LOG_FILE_SIZE = config('SYSTEM_HEALTH_MAX_LOG_FILE_SIZE', default='100MB')
SYSTEM_HEALTH_CACHE_KEY = 'system_health_status'
SYSTEM_HEALTH_CACHE_TIMEOUT = config('SYSTEM_HEALTH_CACHE_TIMEOUT', default=300, cast=int)
SYSTEM_HEALTH_JOB_CACHE_TIMEOUT = config('SYSTEM_HEALTH_JOB_CACHE_TIMEOUT', default=600, cast=int)
SYSTEM_HEALTH_QUEUE_TIMEOUT = config('SYSTEM_HEALTH_QUEUE_TIMEOUT', default=1.0, cast=float)

SYSTEM_LOG_RETENTION_DAYS = config('SYSTEM_LOG_RETENTION_DAYS', default=30, cast=int)
SYSTEM_MEMORY_LIMIT = config('SYSTEM_MEMORY_LIMIT', default='')

# ==================== TEST CONFIGURATION ====================
if IS_TESTING:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
        }
    }

    PASSWORD_HASHERS = [
        'django.contrib.auth.hashers.MD5PasswordHasher',
    ]
    AUTH_PASSWORD_VALIDATORS = []

    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'learning-platform-tests',
        }
    }

    CELERY_TASK_ALWAYS_EAGER = True
    CELERY_TASK_EAGER_PROPAGATES = True
    CELERY_BROKER_URL = 'memory://'

    EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    SECURE_SSL_REDIRECT = False

    # Reduce logging noise during tests
    logging.disable(logging.CRITICAL)

# ==================== FINAL VALIDATION ====================
if IS_PRODUCTION and DEBUG:
    raise ValueError("DEBUG must be False in production!")
