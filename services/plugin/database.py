"""
플러그인 DB 자격 증명

<artifact dir>/database.json 에 한 번 생성된 뒤 그대로 재사용한다 (파일 권한 0600).
"""
import json
import logging
import os
import secrets
import string
from datetime import datetime, timezone
from typing import Tuple

from models.plugin import DatabaseCredentials, PluginManifest

logger = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "database.json"
SECRET_LENGTH = 24
SECRET_ALPHABET = string.ascii_letters + string.digits


def credentials_path(artifact_dir: str) -> str:
    return os.path.join(artifact_dir, CREDENTIALS_FILENAME)


def generate_secret(length: int = SECRET_LENGTH) -> str:
    return "".join(secrets.choice(SECRET_ALPHABET) for _ in range(length))


def ensure_database_credentials(
    artifact_dir: str, identifier: str, manifest: PluginManifest
) -> Tuple[DatabaseCredentials, bool]:
    """저장된 자격 증명이 있으면 그대로, 없으면 새로 생성

    Returns:
        (credentials, created)
    """
    path = credentials_path(artifact_dir)
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            creds = DatabaseCredentials.model_validate(json.load(f))
        logger.info(f"Reusing database credentials for {identifier}")
        return creds, False

    permission = manifest.permissions.database
    driver = permission.driver or "postgres"
    user = permission.user or f"{identifier}_user"
    database = permission.database or f"{identifier}_db"
    password = generate_secret()

    creds = DatabaseCredentials(
        dsn=f"{driver}://{user}:{password}@{identifier}-db/{database}",
        driver=driver,
        user=user,
        database=database,
        created_at=datetime.now(timezone.utc),
    )

    os.makedirs(artifact_dir, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(creds.model_dump_json(by_alias=True, indent=2))
    logger.info(f"Generated database credentials for {identifier}")
    return creds, True


def rollback_database_credentials(artifact_dir: str) -> None:
    os.remove(credentials_path(artifact_dir))
    logger.info(f"Removed database credentials in {artifact_dir}")
