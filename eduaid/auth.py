"""
Mock authentication: in-memory users and opaque bearer tokens.
Nothing is persisted; a restart forgets every account except the demo one.
"""

import logging
import secrets
import threading
from datetime import datetime, timedelta

from werkzeug.security import check_password_hash, generate_password_hash

from .config import CONFIG
from .errors import AuthError

logger = logging.getLogger(__name__)

DEMO_USER = {"email": "admin@edu-aid.com", "password": "admin123", "name": "EDU-AID Admin"}


def hash_password(password):
    return generate_password_hash(password)


def check_password(hashed, password):
    return check_password_hash(hashed, password)


class UserStore:
    def __init__(self, seed_demo=True):
        self._users = {}
        self._tokens = {}
        self._lock = threading.Lock()
        if seed_demo:
            self.register(DEMO_USER["email"], DEMO_USER["password"], DEMO_USER["name"])

    def register(self, email, password, name):
        if not email or not password or not name:
            raise AuthError("Email, password, and name are required", status_code=400)
        email = email.strip().lower()
        with self._lock:
            if email in self._users:
                raise AuthError("User already exists", status_code=400)
            self._users[email] = {
                "email": email,
                "name": name,
                "password": hash_password(password),
                "createdAt": datetime.now().isoformat(),
            }
        logger.info(f"Registered user {email}")
        return {"email": email, "name": name}

    def login(self, email, password):
        """Returns (token, user). Raises AuthError on bad credentials."""
        if not email or not password:
            raise AuthError("Email and password are required", status_code=400)
        email = email.strip().lower()
        with self._lock:
            user = self._users.get(email)
        if not user or not check_password(user["password"], password):
            raise AuthError("Invalid credentials")

        token = secrets.token_urlsafe(32)
        expires_at = datetime.now() + timedelta(hours=CONFIG["token_ttl_hours"])
        public = {"email": user["email"], "name": user["name"]}
        with self._lock:
            self._tokens[token] = {"user": public, "expiresAt": expires_at}
        return token, public

    def verify_token(self, token):
        if not token:
            raise AuthError("No token provided")
        with self._lock:
            entry = self._tokens.get(token)
            if entry and entry["expiresAt"] <= datetime.now():
                del self._tokens[token]
                entry = None
        if entry is None:
            raise AuthError("Invalid token")
        return entry["user"]


def bearer_token(authorization):
    """Token part of an `Authorization: Bearer <token>` header"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() != 'bearer':
        return None
    return token.strip() or None
