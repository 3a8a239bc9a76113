# PATH: apps/api/config/settings/test.py
import os
import tempfile

from .base import *

DEBUG = False

SECRET_KEY = "test-secret-key"

# 파일 기반 SQLite: 워커 스레드가 같은 테스트 DB 에 붙을 수 있어야 한다
# IMMEDIATE: 쓰기 트랜잭션끼리는 busy timeout 동안 대기 후 직렬화
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.path.join(tempfile.gettempdir(), "campus_results.sqlite3"),
        "OPTIONS": {
            "timeout": 30,
            "transaction_mode": "IMMEDIATE",
        },
        "TEST": {
            "NAME": os.path.join(tempfile.gettempdir(), "test_campus_results.sqlite3"),
        },
    }
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# ==================================================
# Celery: run tasks inline
# ==================================================

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# throttle 은 별도 테스트에서만 조인다
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    "anon": "10000/min",
    "user": "10000/min",
    "uploads": "10000/min",
}

# 기본은 인라인 생성, 스레드 풀은 개별 테스트에서 override
RESULTS_TRANSCRIPT_MAX_WORKERS = 1

RESULTS_VERIFICATION_BASE_URL = "https://results.test/api/v1/results/verify"

LOGGING["root"]["level"] = "WARNING"
