import base64
import json
from datetime import datetime, timedelta, timezone

import pytest

from taskify_app.errors import ExpiredToken, InvalidToken
from taskify_app.security import TokenService, hash_password, verify_password

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock():
    return FakeClock(T0)


@pytest.fixture()
def service(clock):
    return TokenService("unit-test-secret", expires_minutes=60, clock=clock)


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def test_password_hash_is_salted_and_verifies():
    h1 = hash_password("pw1-secret")
    h2 = hash_password("pw1-secret")
    assert h1 != h2
    assert "pw1-secret" not in h1
    assert verify_password("pw1-secret", h1)
    assert not verify_password("wrong", h1)


def test_verify_password_without_hash_is_false():
    assert verify_password("anything", None) is False


def test_token_has_three_segments_and_claims(service):
    token = service.issue("user-1")
    header, payload, signature = token.split(".")
    claims = json.loads(_b64decode(payload))
    assert claims["sub"] == "user-1"
    assert claims["iat"] == int(T0.timestamp())
    assert claims["exp"] == int(T0.timestamp()) + 3600
    assert json.loads(_b64decode(header))["alg"] == "HS256"
    assert signature


def test_round_trip_until_expiry(service, clock):
    token = service.issue("user-1")
    assert service.verify(token) == "user-1"
    clock.now = T0 + timedelta(minutes=30)
    assert service.verify(token) == "user-1"
    clock.now = T0 + timedelta(minutes=60) - timedelta(seconds=1)
    assert service.verify(token) == "user-1"


def test_expiry_boundary_is_inclusive(service, clock):
    token = service.issue("user-1")
    clock.now = T0 + timedelta(minutes=60)
    with pytest.raises(ExpiredToken):
        service.verify(token)
    clock.now = T0 + timedelta(days=3)
    with pytest.raises(ExpiredToken):
        service.verify(token)


@pytest.mark.parametrize("token", [None, "", "not-a-token", "a.b", "a.b.c"])
def test_malformed_tokens_are_invalid(service, token):
    with pytest.raises(InvalidToken):
        service.verify(token)


def test_other_secret_is_rejected(service, clock):
    other = TokenService("another-secret", clock=clock)
    with pytest.raises(InvalidToken):
        service.verify(other.issue("user-1"))


def test_every_signature_bit_flip_is_rejected(service):
    header, payload, signature = service.issue("user-1").split(".")
    raw = bytearray(_b64decode(signature))
    for i in range(len(raw) * 8):
        flipped = bytearray(raw)
        flipped[i // 8] ^= 1 << (i % 8)
        with pytest.raises(InvalidToken):
            service.verify(f"{header}.{payload}.{_b64encode(bytes(flipped))}")


def test_every_payload_bit_flip_is_rejected(service):
    header, payload, signature = service.issue("user-1").split(".")
    raw = bytearray(_b64decode(payload))
    for i in range(len(raw) * 8):
        flipped = bytearray(raw)
        flipped[i // 8] ^= 1 << (i % 8)
        with pytest.raises(InvalidToken):
            service.verify(f"{header}.{_b64encode(bytes(flipped))}.{signature}")


def test_extending_expiry_breaks_signature(service, clock):
    header, payload, signature = service.issue("user-1").split(".")
    claims = json.loads(_b64decode(payload))
    claims["exp"] += 10 * 365 * 24 * 3600
    forged = _b64encode(json.dumps(claims).encode())
    clock.now = T0 + timedelta(hours=2)
    with pytest.raises(InvalidToken):
        service.verify(f"{header}.{forged}.{signature}")


def test_token_without_subject_is_invalid(clock):
    from jose import jwt

    token = jwt.encode({"exp": int(T0.timestamp()) + 60}, "unit-test-secret", algorithm="HS256")
    with pytest.raises(InvalidToken):
        TokenService("unit-test-secret", clock=clock).verify(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenService("")


@pytest.mark.parametrize("iat", [None, 1767268800.5])
def test_token_needs_integer_issued_at(clock, iat):
    from jose import jwt

    claims = {"sub": "user-1", "exp": int(T0.timestamp()) + 60}
    if iat is not None:
        claims["iat"] = iat
    token = jwt.encode(claims, "unit-test-secret", algorithm="HS256")
    with pytest.raises(InvalidToken):
        TokenService("unit-test-secret", clock=clock).verify(token)
