"""ChecksumVerifier 测试"""

import pytest

from helpers import sha256
from noisefetch.download import ChecksumVerifier


def test_verify_bytes_matches_own_digest():
    data = b"noise engine payload"
    assert ChecksumVerifier.verify_bytes(data, ChecksumVerifier.digest_bytes(data))


def test_verify_bytes_rejects_other_content():
    assert not ChecksumVerifier.verify_bytes(b"payload-a", sha256(b"payload-b"))


def test_verify_bytes_accepts_uppercase_hex():
    data = b"abc"
    assert ChecksumVerifier.verify_bytes(data, sha256(data).upper())


def test_verify_bytes_rejects_malformed_digest():
    assert not ChecksumVerifier.verify_bytes(b"abc", "not-a-hex-digest")


@pytest.mark.asyncio
async def test_verify_file(tmp_path):
    path = tmp_path / "artifact.zip"
    data = b"x" * 200_000
    path.write_bytes(data)

    assert await ChecksumVerifier.verify(str(path), sha256(data))
    assert not await ChecksumVerifier.verify(str(path), sha256(data + b"!"))
    assert await ChecksumVerifier.calc_sha256(str(path)) == sha256(data)


@pytest.mark.asyncio
async def test_verify_missing_file(tmp_path):
    missing = tmp_path / "missing.zip"
    assert await ChecksumVerifier.calc_sha256(str(missing)) is None
    assert not await ChecksumVerifier.verify(str(missing), sha256(b""))
