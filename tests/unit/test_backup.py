"""Tests for encrypted backup and restore."""

import base64
import json
import random
import threading
from unittest.mock import patch
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from aimrank.services.backup import (
    BACKUP_VERSION,
    BackupError,
    BackupService,
    DecryptionFailure,
    InvalidBackupError,
    backup_filename,
    decrypt_to_string,
    encrypt_string,
)
from aimrank.services.leaderboard import LeaderboardSimulator

ITERATIONS = 1000


@pytest.fixture
def service(repository):
    return BackupService(repository, iterations=ITERATIONS)


@pytest_asyncio.fixture
async def seeded(repository):
    await repository.save_rating(1450)
    await repository.save_leaderboard(LeaderboardSimulator(rng=random.Random(2)).generate())
    return repository


def test_encrypt_decrypt_round_trip():
    enc = encrypt_string("hello", "pw", ITERATIONS)
    assert set(enc) == {"salt", "iv", "data"}
    assert len(base64.b64decode(enc["salt"])) == 16
    assert len(base64.b64decode(enc["iv"])) == 12
    assert decrypt_to_string(enc, "pw", ITERATIONS) == "hello"


def test_salt_and_iv_are_fresh():
    first = encrypt_string("hello", "pw", ITERATIONS)
    second = encrypt_string("hello", "pw", ITERATIONS)
    assert first["salt"] != second["salt"]
    assert first["data"] != second["data"]


def test_tampered_ciphertext_fails():
    enc = encrypt_string("hello", "pw", ITERATIONS)
    data = bytearray(base64.b64decode(enc["data"]))
    data[0] ^= 0x01
    enc["data"] = base64.b64encode(bytes(data)).decode("ascii")
    with pytest.raises(DecryptionFailure):
        decrypt_to_string(enc, "pw", ITERATIONS)


def test_backup_filename():
    moment = datetime(2026, 10, 19, 8, 5, 9, tzinfo=timezone.utc)
    assert backup_filename(moment) == "aim2-backup-2026-10-19-08-05-09.json"


@pytest.mark.asyncio
async def test_backup_document_shape(service, seeded):
    document = json.loads(await service.create_backup("abc123"))

    assert document["version"] == BACKUP_VERSION
    assert isinstance(document["created"], int)
    assert set(document["enc"]) == {"salt", "iv", "data"}
    payload = service.read_backup(json.dumps(document), "abc123")
    assert payload["elo"] == 1450
    assert len(payload["leaderboard"]) == 50


@pytest.mark.asyncio
async def test_wrong_password_leaves_state_unchanged(service, seeded):
    text = await service.create_backup("abc123")
    board_before = await seeded.load_leaderboard()
    await seeded.save_rating(1200)

    with pytest.raises(DecryptionFailure):
        await service.restore_backup(text, "wrong")

    assert await seeded.load_rating() == 1200
    assert await seeded.load_leaderboard() == board_before


@pytest.mark.asyncio
async def test_restore_applies_backup(service, seeded):
    text = await service.create_backup("abc123")
    board_before = await seeded.load_leaderboard()
    await seeded.save_rating(1200)
    await seeded.save_leaderboard(board_before[:10])

    restored = await service.restore_backup(text, "abc123")

    assert restored.rating == 1450
    assert await seeded.load_rating() == 1450
    assert await seeded.load_leaderboard() == board_before


@pytest.mark.asyncio
async def test_backup_without_leaderboard(service, repository):
    text = await service.create_backup("pw")
    restored = await service.restore_backup(text, "pw")
    assert restored.rating == 1000
    assert restored.leaderboard is None


@pytest.mark.asyncio
async def test_empty_password_rejected(service):
    with pytest.raises(BackupError):
        await service.create_backup("")


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [
    "not json",
    "[]",
    json.dumps({"version": 1}),
    json.dumps({"version": 2, "enc": {"salt": "", "iv": "", "data": ""}}),
])
async def test_invalid_documents(service, text):
    with pytest.raises(InvalidBackupError):
        await service.restore_backup(text, "pw")


@pytest.mark.asyncio
async def test_invalid_payload_not_applied(service, repository):
    await repository.save_rating(1300)
    enc = encrypt_string(json.dumps({"elo": "lots", "leaderboard": None}), "pw", ITERATIONS)
    text = json.dumps({"version": BACKUP_VERSION, "created": 0, "enc": enc})

    with pytest.raises(InvalidBackupError):
        await service.restore_backup(text, "pw")
    assert await repository.load_rating() == 1300


@pytest.mark.asyncio
async def test_invalid_leaderboard_blocks_rating_write(service, repository):
    await repository.save_rating(1300)
    payload = {"elo": 2000, "leaderboard": [{"name": "", "elo": 1500}]}
    enc = encrypt_string(json.dumps(payload), "pw", ITERATIONS)
    text = json.dumps({"version": 1, "created": 0, "enc": enc})

    with pytest.raises(InvalidBackupError):
        await service.restore_backup(text, "pw")
    assert await repository.load_rating() == 1300


@pytest.mark.asyncio
async def test_empty_leaderboard_in_backup_is_restored(service, seeded):
    enc = encrypt_string(json.dumps({"elo": 1200, "leaderboard": []}), "pw", ITERATIONS)
    text = json.dumps({"version": 1, "created": 0, "enc": enc})

    restored = await service.restore_backup(text, "pw")

    assert restored.leaderboard == []
    assert await seeded.load_leaderboard() == []
    assert await seeded.load_rating() == 1200


@pytest.mark.asyncio
async def test_key_derivation_runs_off_the_event_loop(service):
    loop_thread = threading.get_ident()
    threads = []

    def recording_encrypt(*args):
        threads.append(threading.get_ident())
        return encrypt_string(*args)

    with patch("aimrank.services.backup.encrypt_string", side_effect=recording_encrypt):
        text = await service.create_backup("pw")

    def recording_read(self, text, password):
        threads.append(threading.get_ident())
        return {"elo": 1000, "leaderboard": None}

    with patch.object(BackupService, "read_backup", autospec=True, side_effect=recording_read):
        await service.restore_backup(text, "pw")

    assert len(threads) == 2
    assert loop_thread not in threads
