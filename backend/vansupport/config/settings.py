"""Process configuration read once from the environment (.env supported)."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional
import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class Settings:
    database_url: str = 'sqlite:///dev.db'
    jwt_secret_key: str = 'dev-secret'
    jwt_access_token_hours: int = 24
    cookie_secure: bool = False
    upload_folder: str = 'uploads'
    public_upload_base_url: str = '/uploads'
    client_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            database_url=os.getenv('DATABASE_URL', cls.database_url),
            jwt_secret_key=os.getenv('JWT_SECRET_KEY', cls.jwt_secret_key),
            jwt_access_token_hours=int(os.getenv('JWT_ACCESS_TOKEN_HOURS', cls.jwt_access_token_hours)),
            cookie_secure=_env_bool('COOKIE_SECURE', cls.cookie_secure),
            upload_folder=os.getenv('UPLOAD_FOLDER', cls.upload_folder),
            public_upload_base_url=os.getenv('PUBLIC_UPLOAD_BASE_URL', cls.public_upload_base_url),
            client_url=os.getenv('CLIENT_URL'),
        )

    def to_flask_config(self) -> Dict[str, Any]:
        return {
            'DATABASE_URL': self.database_url,
            'JWT_SECRET_KEY': self.jwt_secret_key,
            'JWT_ACCESS_TOKEN_EXPIRES': timedelta(hours=self.jwt_access_token_hours),
            # session cookie for the dashboard, bearer header for scripts
            'JWT_TOKEN_LOCATION': ['cookies', 'headers'],
            'JWT_ACCESS_COOKIE_NAME': 'token',
            'JWT_COOKIE_SECURE': self.cookie_secure,
            'JWT_COOKIE_SAMESITE': 'Strict',
            'JWT_COOKIE_CSRF_PROTECT': False,
            'UPLOAD_FOLDER': self.upload_folder,
            'PUBLIC_UPLOAD_BASE_URL': self.public_upload_base_url,
            'CLIENT_URL': self.client_url,
            'MAX_CONTENT_LENGTH': 60 * 1024 * 1024,
        }


__all__ = ['Settings']
