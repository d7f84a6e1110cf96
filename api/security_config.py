"""
Security Configuration for Interio Estimator API
Centralizes security settings for CORS, Trusted Hosts, and authentication
"""

import os

# CORS Configuration
ALLOWED_ORIGINS = [
    "https://interio.app",
    "https://app.interio.app",
]

# Trusted Host Configuration
ALLOWED_HOSTS = [
    "interio.app",
    "*.interio.app",
    "localhost",
    "127.0.0.1",
]

# Response Headers to Expose
EXPOSE_HEADERS = ["X-Trace-Id", "X-Process-Time"]


def get_allowed_origins() -> list[str]:
    """Get allowed origins based on environment"""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ALLOWED_ORIGINS
    else:
        return ["http://localhost:3000", "http://localhost:5173", "http://127.0.0.1:3000"]


def get_allowed_hosts() -> list[str]:
    """Get allowed hosts based on environment"""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ALLOWED_HOSTS
    else:
        return ["localhost", "127.0.0.1", "testserver"]


# JWT Configuration
JWT_ALGORITHM = "HS256"
