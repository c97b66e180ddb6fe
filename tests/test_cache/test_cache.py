"""Tests for the blocking Tote.get() path and its helpers."""

from __future__ import annotations

import json
import logging
import os
from datetime import timedelta
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from tote import Tote
from tote.codec import JsonCodec
from tote.exceptions import FetchError, InvalidUsageError, PersistenceError
from tote.models import Verdict

HOUR = timedelta(hours=1)


def _write_json(path: Path, data: object) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


# ------------------------------------------------------------------ #
# Construction
# ------------------------------------------------------------------ #


class TestConstruction:
    def test_no_io_on_construction(self, tmp_path: Path) -> None:
        """Constructing a handle for a path in a missing directory does not touch disk."""
        path = tmp_path / "missing" / "dir" / "data.cache"
        cache = Tote(path, HOUR)
        assert cache.path == path
        assert not path.parent.exists()

    def test_accepts_str_path(self, tmp_path: Path) -> None:
        cache = Tote(str(tmp_path / "a.cache"), HOUR)
        assert isinstance(cache.path, Path)

    @pytest.mark.parametrize(
        "max_age, expected",
        [
            (timedelta(minutes=5), timedelta(minutes=5)),
            (300, timedelta(seconds=300)),
            (0.5, timedelta(milliseconds=500)),
        ],
    )
    def test_max_age_conversion(self, tmp_path: Path, max_age, expected) -> None:
        assert Tote(tmp_path / "a.cache", max_age).max_age == expected

    def test_default_codec_is_json(self, tmp_path: Path) -> None:
        cache = Tote(tmp_path / "a.cache", HOUR, list[str])
        assert isinstance(cache.codec, JsonCodec)
        assert cache.codec.artifact_type == list[str]

    def test_explicit_codec_wins(self, tmp_path: Path) -> None:
        codec = JsonCodec(int)
        cache = Tote(tmp_path / "a.cache", HOUR, list[str], codec=codec)
        assert cache.codec is codec


# ------------------------------------------------------------------ #
# Freshness verdicts
# ------------------------------------------------------------------ #


class TestVerdict:
    def test_missing(self, cache_file: Path) -> None:
        assert Tote(cache_file, HOUR).verdict() is Verdict.MISSING

    def test_fresh(self, cache_file: Path) -> None:
        _write_json(cache_file, ["a"])
        assert Tote(cache_file, HOUR, list[str]).verdict() is Verdict.FRESH

    def test_expired(self, cache_file: Path, backdate) -> None:
        _write_json(cache_file, ["a"])
        backdate(cache_file, 2 * 3600)
        assert Tote(cache_file, HOUR, list[str]).verdict() is Verdict.EXPIRED

    def test_just_inside_window_is_fresh(self, cache_file: Path, backdate) -> None:
        _write_json(cache_file, ["a"])
        backdate(cache_file, 3600 - 5)
        assert Tote(cache_file, HOUR, list[str]).verdict() is Verdict.FRESH

    @pytest.mark.parametrize(
        "elapsed, expected",
        [(3600, Verdict.FRESH), (3601, Verdict.EXPIRED)],
    )
    def test_exact_window_boundary(
        self, cache_file: Path, monkeypatch: pytest.MonkeyPatch, elapsed: int, expected: Verdict
    ) -> None:
        """An age exactly equal to max_age is still fresh; one second past is not."""
        _write_json(cache_file, ["a"])
        written_at = 1_700_000_000
        os.utime(cache_file, (written_at, written_at))
        monkeypatch.setattr(
            "tote.cache.time", SimpleNamespace(time=lambda: float(written_at + elapsed))
        )
        assert Tote(cache_file, HOUR, list[str]).verdict() is expected

    def test_corrupt_bytes(self, cache_file: Path) -> None:
        cache_file.write_bytes(b"\x00\xffnot json")
        assert Tote(cache_file, HOUR, list[str]).verdict() is Verdict.CORRUPT

    def test_wrong_shape_is_corrupt(self, cache_file: Path) -> None:
        _write_json(cache_file, {"not": "a list"})
        assert Tote(cache_file, HOUR, list[str]).verdict() is Verdict.CORRUPT

    def test_empty_file_is_corrupt(self, cache_file: Path) -> None:
        cache_file.touch()
        assert Tote(cache_file, HOUR, list[str]).verdict() is Verdict.CORRUPT

    def test_directory_at_path_is_corrupt(self, cache_file: Path) -> None:
        cache_file.mkdir()
        assert Tote(cache_file, HOUR).verdict() is Verdict.CORRUPT

    def test_expired_takes_precedence_over_corrupt(self, cache_file: Path, backdate) -> None:
        cache_file.write_bytes(b"garbage")
        backdate(cache_file, 7200)
        assert Tote(cache_file, HOUR).verdict() is Verdict.EXPIRED


# ------------------------------------------------------------------ #
# get()
# ------------------------------------------------------------------ #


class TestGet:
    def test_missing_file_fetches_and_writes(self, cache_file: Path, counting_fetch) -> None:
        fetch = counting_fetch(["a", "b"])
        cache = Tote(cache_file, HOUR, list[str])

        assert cache.get(fetch) == ["a", "b"]
        assert fetch.calls == 1
        assert cache_file.is_file()
        assert json.loads(cache_file.read_text(encoding="utf-8")) == ["a", "b"]

    def test_fresh_file_skips_fetch(self, cache_file: Path, counting_fetch) -> None:
        _write_json(cache_file, ["cached"])
        fetch = counting_fetch(["fetched"])

        assert Tote(cache_file, HOUR, list[str]).get(fetch) == ["cached"]
        assert fetch.calls == 0

    def test_expired_file_refetches_even_if_valid(
        self, cache_file: Path, counting_fetch, backdate
    ) -> None:
        _write_json(cache_file, ["stale"])
        backdate(cache_file, 7200)
        fetch = counting_fetch(["new"])

        assert Tote(cache_file, HOUR, list[str]).get(fetch) == ["new"]
        assert fetch.calls == 1
        assert json.loads(cache_file.read_text(encoding="utf-8")) == ["new"]

    def test_garbage_file_self_heals(self, cache_file: Path, counting_fetch) -> None:
        cache_file.write_bytes(b"\x89PNG garbage {{{")
        fetch = counting_fetch(["z"])
        cache = Tote(cache_file, HOUR, list[str])

        assert cache.get(fetch) == ["z"]
        assert fetch.calls == 1
        assert cache.codec.decode(cache_file.read_bytes()) == ["z"]

    def test_corrupt_file_logs_warning(self, cache_file: Path, counting_fetch, caplog) -> None:
        cache_file.write_bytes(b"garbage")
        with caplog.at_level(logging.WARNING, logger="tote.cache"):
            Tote(cache_file, HOUR, list[str]).get(counting_fetch(["z"]))
        assert "Ignoring unreadable cache file" in caplog.text

    def test_overwrite_truncates_longer_previous_contents(
        self, cache_file: Path, counting_fetch, backdate
    ) -> None:
        _write_json(cache_file, ["a" * 500, "b" * 500])
        backdate(cache_file, 7200)
        cache = Tote(cache_file, HOUR, list[str])

        cache.get(counting_fetch(["c"]))
        assert cache.codec.decode(cache_file.read_bytes()) == ["c"]

    def test_two_calls_fetch_once(self, cache_file: Path, counting_fetch) -> None:
        fetch = counting_fetch(["a", "b"])
        cache = Tote(cache_file, HOUR, list[str])

        first = cache.get(fetch)
        second = cache.get(fetch)
        assert first == second == ["a", "b"]
        assert fetch.calls == 1

    def test_fetch_bound_at_construction(self, cache_file: Path, counting_fetch) -> None:
        fetch = counting_fetch({"name": "Test", "value": 50})
        cache = Tote(cache_file, HOUR, dict[str, Any], fetch=fetch)
        assert cache.get() == {"name": "Test", "value": 50}
        assert fetch.calls == 1

    def test_per_call_fetch_overrides_bound(self, cache_file: Path, counting_fetch) -> None:
        bound = counting_fetch(["bound"])
        override = counting_fetch(["override"])
        cache = Tote(cache_file, HOUR, list[str], fetch=bound)
        assert cache.get(override) == ["override"]
        assert bound.calls == 0

    def test_fresh_cache_needs_no_fetch(self, cache_file: Path) -> None:
        _write_json(cache_file, [1, 2])
        assert Tote(cache_file, HOUR, list[int]).get() == [1, 2]

    def test_no_fetch_on_miss_is_usage_error(self, cache_file: Path) -> None:
        with pytest.raises(InvalidUsageError, match="missing"):
            Tote(cache_file, HOUR).get()

    def test_async_fetch_rejected(self, cache_file: Path, async_counting_fetch) -> None:
        fetch = async_counting_fetch(["a"])
        with pytest.raises(InvalidUsageError, match="get_async"):
            Tote(cache_file, HOUR, list[str]).get(fetch)
        assert not cache_file.exists()

    def test_coroutine_function_rejected(self, cache_file: Path) -> None:
        async def fetch() -> list[str]:
            return ["a"]

        with pytest.raises(InvalidUsageError, match="asynchronous"):
            Tote(cache_file, HOUR, list[str]).get(fetch)

    def test_parent_directories_created(self, tmp_path: Path, counting_fetch) -> None:
        path = tmp_path / "nested" / "deeper" / "ip.json"
        Tote(path, HOUR, str).get(counting_fetch("1.2.3.4"))
        assert path.is_file()

    def test_none_artifact_is_cached(self, cache_file: Path, counting_fetch) -> None:
        fetch = counting_fetch(None)
        cache = Tote(cache_file, HOUR)
        assert cache.get(fetch) is None
        assert cache.get(fetch) is None
        assert fetch.calls == 1


# ------------------------------------------------------------------ #
# Errors
# ------------------------------------------------------------------ #


class TestErrors:
    def test_fetch_error_no_file_created(self, cache_file: Path, counting_fetch) -> None:
        boom = RuntimeError("network down")
        fetch = counting_fetch(error=boom)

        with pytest.raises(FetchError, match="network down") as exc_info:
            Tote(cache_file, HOUR, list[str]).get(fetch)

        assert exc_info.value.__cause__ is boom
        assert fetch.calls == 1
        assert not cache_file.exists()

    def test_fetch_error_leaves_stale_file_untouched(
        self, cache_file: Path, counting_fetch, backdate
    ) -> None:
        _write_json(cache_file, ["stale"])
        backdate(cache_file, 7200)
        before = cache_file.read_bytes()

        with pytest.raises(FetchError):
            Tote(cache_file, HOUR, list[str]).get(counting_fetch(error=ValueError("bad")))
        assert cache_file.read_bytes() == before

    def test_fetch_error_passes_through_unwrapped(self, cache_file: Path, counting_fetch) -> None:
        original = FetchError("already wrapped")
        with pytest.raises(FetchError) as exc_info:
            Tote(cache_file, HOUR).get(counting_fetch(error=original))
        assert exc_info.value is original

    def test_fetch_not_retried(self, cache_file: Path, counting_fetch) -> None:
        fetch = counting_fetch(error=OSError("flaky"))
        cache = Tote(cache_file, HOUR)
        with pytest.raises(FetchError):
            cache.get(fetch)
        assert fetch.calls == 1

    def test_write_failure_is_persistence_error(self, tmp_path: Path, counting_fetch) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        cache = Tote(blocker / "data.cache", HOUR, list[str])

        with pytest.raises(PersistenceError, match="Cannot write"):
            cache.get(counting_fetch(["a"]))

    def test_unencodable_value_is_persistence_error(self, cache_file: Path, counting_fetch) -> None:
        cache = Tote(cache_file, HOUR)
        with pytest.raises(PersistenceError, match="Cannot encode"):
            cache.get(counting_fetch(object()))
        assert not cache_file.exists()

    def test_value_of_wrong_type_is_not_written(self, cache_file: Path, counting_fetch) -> None:
        cache = Tote(cache_file, HOUR, list[str])
        with pytest.raises(PersistenceError, match="Cannot encode"):
            cache.get(counting_fetch(["a", 1]))
        assert not cache_file.exists()

    def test_value_of_wrong_type_keeps_stale_file(
        self, cache_file: Path, counting_fetch, backdate
    ) -> None:
        _write_json(cache_file, ["old"])
        backdate(cache_file, 7200)
        cache = Tote(cache_file, HOUR, list[str])

        with pytest.raises(PersistenceError):
            cache.get(counting_fetch({"not": "a list"}))
        assert json.loads(cache_file.read_text(encoding="utf-8")) == ["old"]


# ------------------------------------------------------------------ #
# Scenario from first run through expiry
# ------------------------------------------------------------------ #


class TestScenario:
    def test_first_run_reuse_and_expiry(self, cache_file: Path, counting_fetch, backdate) -> None:
        cache = Tote(cache_file, HOUR, list[str])

        first = counting_fetch(["a", "b"])
        assert cache.get(first) == ["a", "b"]
        assert first.calls == 1
        assert cache_file.is_file()

        # Ten minutes later
        backdate(cache_file, 10 * 60)
        second = counting_fetch(["unused"])
        assert cache.get(second) == ["a", "b"]
        assert second.calls == 0

        # Two hours later
        backdate(cache_file, 2 * 3600)
        third = counting_fetch(["c"])
        assert cache.get(third) == ["c"]
        assert third.calls == 1
        assert cache.codec.decode(cache_file.read_bytes()) == ["c"]


# ------------------------------------------------------------------ #
# put / read / is_valid / status
# ------------------------------------------------------------------ #


class TestHelpers:
    def test_put_then_read(self, cache_file: Path) -> None:
        cache = Tote(cache_file, timedelta(milliseconds=300), dict[str, Any])
        cache.put({"name": "Test", "value": 50})
        assert cache.is_valid()
        assert cache.read() == {"name": "Test", "value": 50}

    def test_read_returns_none_when_not_fresh(self, cache_file: Path, backdate) -> None:
        cache = Tote(cache_file, HOUR, list[str])
        assert cache.read() is None
        cache_file.write_text("{", encoding="utf-8")
        assert cache.read() is None
        cache.put(["x"])
        backdate(cache_file, 7200)
        assert cache.read() is None

    def test_is_valid_ignores_contents(self, cache_file: Path, backdate) -> None:
        cache = Tote(cache_file, HOUR, list[str])
        assert not cache.is_valid()
        cache_file.write_bytes(b"garbage")
        assert cache.is_valid()
        backdate(cache_file, 7200)
        assert not cache.is_valid()

    def test_status_missing(self, cache_file: Path) -> None:
        status = Tote(cache_file, HOUR).status()
        assert status.exists is False
        assert status.verdict is Verdict.MISSING
        assert status.age is None
        assert status.modified_at is None
        assert status.expires_at is None

    def test_status_existing(self, cache_file: Path, backdate) -> None:
        cache = Tote(cache_file, HOUR, list[str])
        cache.put(["a"])
        backdate(cache_file, 600)

        status = cache.status()
        assert status.exists is True
        assert status.verdict is Verdict.FRESH
        assert status.size_bytes == cache_file.stat().st_size
        assert timedelta(seconds=595) <= status.age <= timedelta(seconds=660)
        assert status.expires_at == status.modified_at + HOUR

    def test_repr_mentions_path(self, cache_file: Path) -> None:
        assert str(cache_file) in repr(Tote(cache_file, HOUR))
