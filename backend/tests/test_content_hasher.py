from __future__ import annotations

import hashlib
from datetime import date

from app.services.content_hasher import fingerprint


def test_fingerprint_matches_compact_json_digest() -> None:
    expected = hashlib.sha256(
        '{"description":"Gym plan","startDate":"2025-01-01","endDate":"2025-01-03"}'.encode("utf-8")
    ).hexdigest()

    assert fingerprint("Gym plan", date(2025, 1, 1), date(2025, 1, 3)) == expected


def test_fingerprint_is_stable_and_hex() -> None:
    first = fingerprint("Read daily", date(2025, 2, 1), date(2025, 2, 7))
    second = fingerprint("Read daily", "2025-02-01", "2025-02-07")

    assert first == second
    assert len(first) == 64
    int(first, 16)


def test_fingerprint_changes_with_any_input() -> None:
    base = fingerprint("Read daily", date(2025, 2, 1), date(2025, 2, 7))

    assert fingerprint("Read daily!", date(2025, 2, 1), date(2025, 2, 7)) != base
    assert fingerprint("Read daily", date(2025, 2, 2), date(2025, 2, 7)) != base
    assert fingerprint("Read daily", date(2025, 2, 1), date(2025, 2, 8)) != base
    assert fingerprint("Read daily", date(2025, 2, 1), date(2025, 2, 7), source_text="chapter 1") != base


def test_fingerprint_keeps_non_ascii_text() -> None:
    expected = hashlib.sha256(
        '{"description":"Méditation","startDate":"2025-03-01","endDate":"2025-03-01","source_text":"été"}'.encode("utf-8")
    ).hexdigest()

    assert fingerprint("Méditation", date(2025, 3, 1), date(2025, 3, 1), source_text="été") == expected
