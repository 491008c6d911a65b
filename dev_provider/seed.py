"""
Seed users and clients from environment, plus the default demo client. No hardcoded credentials.
Optional: DEV_PROVIDER_SEED_USER + DEV_PROVIDER_SEED_PASSWORD, DEV_PROVIDER_CLIENT_ID + DEV_PROVIDER_REDIRECT_URIS.
"""
import json
import logging
import os

import bcrypt
from sqlalchemy.orm import Session

from dev_provider.config import DEFAULT_CLIENT_ID, DEFAULT_REDIRECT_URIS
from dev_provider.models import Client, User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8")[:72], hashed.encode("utf-8"))


def ensure_client(db: Session, client_id: str, redirect_uris: list[str]) -> Client:
    client = db.query(Client).filter(Client.client_id == client_id).first()
    if client is None:
        client = Client(client_id=client_id, redirect_uris=json.dumps(redirect_uris))
        db.add(client)
        db.commit()
        logger.info("Seeded client: %s", client_id)
    return client


def seed_from_env(db: Session) -> None:
    seed_user = os.environ.get("DEV_PROVIDER_SEED_USER")
    seed_password = os.environ.get("DEV_PROVIDER_SEED_PASSWORD")
    if seed_user and seed_password:
        if db.query(User).filter(User.username == seed_user).first() is None:
            db.add(
                User(
                    username=seed_user,
                    password_hash=hash_password(seed_password),
                    name=os.environ.get("DEV_PROVIDER_SEED_NAME"),
                    email=os.environ.get("DEV_PROVIDER_SEED_EMAIL"),
                )
            )
            db.commit()
            logger.info("Seeded user: %s", seed_user)
        else:
            logger.debug("User already exists: %s", seed_user)

    client_id = os.environ.get("DEV_PROVIDER_CLIENT_ID")
    uris_str = os.environ.get("DEV_PROVIDER_REDIRECT_URIS", "")
    uris = [u.strip() for u in uris_str.split(",") if u.strip()]
    if client_id and uris:
        ensure_client(db, client_id, uris)

    ensure_client(db, DEFAULT_CLIENT_ID, DEFAULT_REDIRECT_URIS)
