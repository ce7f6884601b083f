"""
Encrypted backup and restore of the player's rating and leaderboard.

File format:
    {"version": 1, "created": <epoch-ms>, "enc": {"salt", "iv", "data"}}

salt/iv/data are base64. data is the AES-256-GCM ciphertext (tag appended)
of the JSON payload {"elo", "leaderboard"}, keyed with PBKDF2-HMAC-SHA256.
"""

import asyncio
import base64
import binascii
import json
import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from aimrank.services.leaderboard import LeaderboardEntry
from aimrank.services.storage import GameRepository, parse_leaderboard, InvalidPersistedState
from aimrank.utils import epoch_ms, utc_now

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1
PBKDF2_ITERATIONS = 150000
SALT_BYTES = 16
IV_BYTES = 12
KEY_BYTES = 32


class BackupError(Exception):
    """Backup could not be created or restored."""
    pass


class InvalidBackupError(BackupError):
    """The file is not a backup this version understands."""
    pass


class DecryptionFailure(BackupError):
    """Wrong password or corrupted ciphertext."""

    def __init__(self, message: str = "Decryption failed: wrong password or corrupted file."):
        super().__init__(message)


@dataclass
class RestoredState:
    """What a successful restore wrote back."""
    rating: Optional[int]
    leaderboard: Optional[List[LeaderboardEntry]]


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(text: str) -> bytes:
    return base64.b64decode(text.encode("ascii"), validate=True)


def derive_key(password: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    """Derive a 256-bit AES key from a password."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_BYTES,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def encrypt_string(plaintext: str, password: str, iterations: int = PBKDF2_ITERATIONS) -> Dict[str, str]:
    """
    Encrypt text under a password.

    Returns:
        {"salt", "iv", "data"} with base64 values
    """
    salt = os.urandom(SALT_BYTES)
    iv = os.urandom(IV_BYTES)
    key = derive_key(password, salt, iterations)
    data = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    return {"salt": _b64encode(salt), "iv": _b64encode(iv), "data": _b64encode(data)}


def decrypt_to_string(encrypted: Dict[str, Any], password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """
    Decrypt an {"salt", "iv", "data"} block.

    Raises:
        DecryptionFailure: For a wrong password or any malformed field
    """
    try:
        salt = _b64decode(encrypted["salt"])
        iv = _b64decode(encrypted["iv"])
        data = _b64decode(encrypted["data"])
        key = derive_key(password, salt, iterations)
        return AESGCM(key).decrypt(iv, data, None).decode("utf-8")
    except (InvalidTag, KeyError, TypeError, ValueError, binascii.Error, AttributeError) as e:
        raise DecryptionFailure() from e


def backup_filename(moment: Optional[datetime] = None) -> str:
    """Suggested download name, e.g. aim2-backup-2026-10-19-08-30-00.json."""
    moment = moment or utc_now()
    return f"aim2-backup-{moment.strftime('%Y-%m-%d-%H-%M-%S')}.json"


class BackupService:
    """Creates and restores encrypted backups through a GameRepository."""

    def __init__(self, repository: GameRepository, iterations: int = PBKDF2_ITERATIONS):
        self.repository = repository
        self.iterations = iterations

    async def create_backup(self, password: str) -> str:
        """
        Encrypt the current rating and leaderboard.

        Args:
            password: Non-empty password

        Returns:
            The backup document as JSON text

        Raises:
            BackupError: If the password is empty
        """
        if not password:
            raise BackupError("Backup cancelled: empty password")

        board = await self.repository.load_leaderboard()
        payload = {
            "elo": await self.repository.load_rating(),
            "leaderboard": [entry.to_dict() for entry in board] if board is not None else None,
        }
        # PBKDF2 is CPU-bound; keep it off the event loop
        loop = asyncio.get_running_loop()
        enc = await loop.run_in_executor(None, encrypt_string, json.dumps(payload), password, self.iterations)
        document = {"version": BACKUP_VERSION, "created": epoch_ms(), "enc": enc}
        logger.info("Backup created")
        return json.dumps(document)

    def read_backup(self, text: str, password: str) -> Dict[str, Any]:
        """
        Decrypt a backup and return its payload without applying it.

        Raises:
            InvalidBackupError: Not JSON, wrong envelope or version, bad payload
            DecryptionFailure: Wrong password or corrupted ciphertext
        """
        try:
            document = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise InvalidBackupError("Selected file is not valid JSON") from e
        if not isinstance(document, dict) or not isinstance(document.get("enc"), dict):
            raise InvalidBackupError("Not a backup file")
        if document.get("version") != BACKUP_VERSION:
            raise InvalidBackupError(f"Unsupported backup version {document.get('version')!r}")
        if not password:
            raise BackupError("Restore cancelled: empty password")

        plaintext = decrypt_to_string(document["enc"], password, self.iterations)
        try:
            payload = json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise InvalidBackupError("Backup payload is not valid JSON") from e
        if not isinstance(payload, dict):
            raise InvalidBackupError("Backup payload must be an object")
        return payload

    async def restore_backup(self, text: str, password: str) -> RestoredState:
        """
        Decrypt, validate and apply a backup.

        Nothing is written unless the whole backup decrypts and validates.

        Raises:
            InvalidBackupError: The file or payload is malformed
            DecryptionFailure: Wrong password or corrupted ciphertext
        """
        loop = asyncio.get_running_loop()
        payload = await loop.run_in_executor(None, self.read_backup, text, password)

        rating = payload.get("elo")
        if rating is not None and (
            isinstance(rating, bool) or not isinstance(rating, (int, float)) or not math.isfinite(rating)
        ):
            raise InvalidBackupError(f"Invalid rating in backup: {rating!r}")

        board = None
        if payload.get("leaderboard") is not None:
            try:
                board = parse_leaderboard(json.dumps(payload["leaderboard"]))
            except (InvalidPersistedState, ValueError) as e:
                raise InvalidBackupError(f"Invalid leaderboard in backup: {e}") from e

        saved_rating = None
        if rating is not None:
            saved_rating = await self.repository.save_rating(rating)
        if board is not None:
            await self.repository.save_leaderboard(board)

        logger.info(f"Backup restored (rating={saved_rating}, leaderboard={'yes' if board is not None else 'no'})")
        return RestoredState(rating=saved_rating, leaderboard=board)
