"""Tests for grant composition — scope, verification, validity, single use."""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from grantfs.evidence import ANONYMOUS, Evidence
from grantfs.grants import (
    DENY,
    Grant,
    allow_anyone,
    allow_files,
    allow_prefix,
    new_grant,
    one_time,
    or_deny,
    permits,
    verify_email,
    verify_identity,
    verify_login,
    verify_token,
    verify_with,
    with_cancel,
    with_deadline,
    with_timeout,
)

paths = st.text(alphabet="abc/._-", max_size=20)


# ---------------------------------------------------------------------------
# Null and missing grants
# ---------------------------------------------------------------------------


class TestNewGrant:
    def test_is_grant(self):
        assert isinstance(new_grant(), Grant)

    @given(path=paths)
    def test_valid_verifies_nobody_allows_nothing(self, path: str):
        g = new_grant()
        assert g.valid() is True
        assert g.allows(path) is False
        assert g.verify(ANONYMOUS) is False
        assert g.verify(Evidence().with_token("x").with_identity("google", "a@b")) is False


class TestMissingGrant:
    def test_deny_never_valid(self):
        assert DENY.valid() is False
        assert DENY.allows("a") is False
        assert DENY.verify(ANONYMOUS) is False

    def test_or_deny(self):
        assert or_deny(None) is DENY
        g = new_grant()
        assert or_deny(g) is g

    def test_permits_none(self):
        assert permits(None, ANONYMOUS, "a") is False

    def test_decorating_none_is_never_valid(self):
        g = allow_anyone(allow_prefix(None, ""))
        assert g.allows("anything") is True
        assert g.verify(ANONYMOUS) is True
        assert g.valid() is False
        assert permits(g, ANONYMOUS, "anything") is False


# ---------------------------------------------------------------------------
# Path scope
# ---------------------------------------------------------------------------


class TestAllowPrefix:
    @given(prefix=paths, suffix=paths)
    def test_allows_everything_under_prefix(self, prefix: str, suffix: str):
        g = allow_prefix(new_grant(), prefix)
        assert g.allows(prefix + suffix) is True

    @given(path=paths)
    def test_falls_back_to_parent(self, path: str):
        parent = allow_files(new_grant(), [path])
        g = allow_prefix(parent, "zzz/")
        assert g.allows(path) is True

    def test_rejects_other_paths(self):
        g = allow_prefix(new_grant(), "public/")
        assert g.allows("public/readme.txt") is True
        assert g.allows("private/secret.txt") is False
        assert g.allows("public") is False

    def test_does_not_verify(self):
        g = allow_prefix(new_grant(), "")
        assert g.verify(ANONYMOUS) is False


class TestAllowFiles:
    def test_exact_membership(self):
        g = allow_files(new_grant(), ["a.txt", "dir/b.txt"])
        assert g.allows("a.txt") is True
        assert g.allows("dir/b.txt") is True
        assert g.allows("dir") is False
        assert g.allows("a.txt.bak") is False

    def test_accepts_generator(self):
        g = allow_files(new_grant(), (p for p in ["x"]))
        assert g.allows("x") is True

    def test_composes_with_prefix(self):
        g = allow_files(allow_prefix(new_grant(), "pub/"), ["other.txt"])
        assert g.allows("pub/x") is True
        assert g.allows("other.txt") is True
        assert g.allows("private") is False


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class TestVerifyToken:
    def test_matching_token(self):
        g = verify_token(new_grant(), "s3cret")
        assert g.verify(Evidence().with_token("s3cret")) is True
        assert g.verify(Evidence().with_token(b"s3cret")) is True

    def test_wrong_or_missing_token(self):
        g = verify_token(new_grant(), "s3cret")
        assert g.verify(Evidence().with_token("nope")) is False
        assert g.verify(ANONYMOUS) is False

    def test_any_of_several(self):
        g = verify_token(verify_token(new_grant(), "a"), "b", "c")
        for token in ("a", "b", "c"):
            assert g.verify(Evidence().with_token(token)) is True

    def test_token_not_in_repr(self):
        g = verify_token(new_grant(), "hunter2")
        assert "hunter2" not in repr(g)


class TestVerifyIdentity:
    def test_verified_email(self):
        g = verify_email(new_grant(), "alice@example.com")
        ev = Evidence().with_identity("google", "alice@example.com")
        assert g.verify(ev) is True

    def test_unverified_claim_rejected(self):
        g = verify_email(new_grant(), "alice@example.com")
        ev = Evidence().with_identity("google", "alice@example.com", verified=False)
        assert g.verify(ev) is False

    def test_provider_must_match(self):
        g = verify_login(new_grant(), "octocat")
        assert g.verify(Evidence().with_identity("github", "octocat")) is True
        assert g.verify(Evidence().with_identity("google", "octocat")) is False

    def test_custom_provider(self):
        g = verify_identity(new_grant(), "ldap", "bob", "carol")
        assert g.verify(Evidence().with_identity("ldap", "carol")) is True
        assert g.verify(Evidence().with_identity("ldap", "mallory")) is False

    def test_or_with_token(self):
        g = verify_email(verify_token(new_grant(), "t"), "a@b.c")
        assert g.verify(Evidence().with_token("t")) is True
        assert g.verify(Evidence().with_identity("google", "a@b.c")) is True


class TestAllowAnyone:
    def test_verifies_anonymous(self):
        g = allow_anyone(new_grant())
        assert g.verify(ANONYMOUS) is True

    def test_scope_still_from_parent(self):
        g = allow_anyone(new_grant())
        assert g.allows("x") is False


class TestVerifyWith:
    def test_predicate_result(self):
        g = verify_with(new_grant(), lambda ev: bool(ev.tokens))
        assert g.verify(Evidence().with_token("x")) is True
        assert g.verify(ANONYMOUS) is False

    def test_failing_predicate_is_unverified(self, caplog):
        def boom(evidence):
            raise ConnectionError("identity service down")

        g = verify_with(new_grant(), boom)
        assert g.verify(ANONYMOUS) is False
        assert "identity service down" in caplog.text

    def test_parent_checked_first(self):
        calls = []

        def predicate(evidence):
            calls.append(evidence)
            return False

        g = verify_with(verify_token(new_grant(), "t"), predicate)
        assert g.verify(Evidence().with_token("t")) is True
        assert calls == []


# ---------------------------------------------------------------------------
# Validity
# ---------------------------------------------------------------------------


class TestDeadline:
    def test_valid_strictly_before(self, clock):
        g = with_deadline(new_grant(), clock.now + timedelta(seconds=10), clock=clock)
        assert g.valid() is True
        clock.advance(timedelta(seconds=9))
        assert g.valid() is True
        clock.advance(timedelta(seconds=1))
        assert g.valid() is False

    def test_stays_invalid_if_clock_goes_back(self, clock):
        g = with_deadline(new_grant(), clock.now + timedelta(seconds=1), clock=clock)
        clock.advance(timedelta(seconds=2))
        assert g.valid() is False
        clock.advance(timedelta(seconds=-60))
        assert g.valid() is False

    def test_naive_deadline_is_utc(self, clock):
        naive = (clock.now + timedelta(hours=1)).replace(tzinfo=None)
        g = with_deadline(new_grant(), naive, clock=clock)
        assert g.valid() is True

    def test_does_not_touch_other_axes(self, clock):
        parent = allow_anyone(allow_prefix(new_grant(), "p/"))
        g = with_deadline(parent, clock.now + timedelta(hours=1), clock=clock)
        assert g.allows("p/x") is True
        assert g.verify(ANONYMOUS) is True

    def test_invalid_parent(self, clock):
        parent, cancel = with_cancel(new_grant())
        g = with_deadline(parent, clock.now + timedelta(hours=1), clock=clock)
        cancel()
        assert g.valid() is False


class TestTimeout:
    def test_expires_after_timeout(self, clock):
        g = with_timeout(new_grant(), timedelta(minutes=5), clock=clock)
        clock.advance(timedelta(minutes=4, seconds=59))
        assert g.valid() is True
        clock.advance(timedelta(seconds=1))
        assert g.valid() is False


class TestCancel:
    def test_cancel(self):
        g, cancel = with_cancel(new_grant())
        assert g.valid() is True
        cancel()
        assert g.valid() is False

    def test_idempotent(self):
        g, cancel = with_cancel(new_grant())
        cancel()
        cancel()
        cancel()
        assert g.valid() is False

    def test_gates_whole_chain(self):
        inner, cancel = with_cancel(new_grant())
        g = allow_anyone(allow_prefix(inner, ""))
        assert permits(g, ANONYMOUS, "x") is True
        cancel()
        assert permits(g, ANONYMOUS, "x") is False


# ---------------------------------------------------------------------------
# Single use
# ---------------------------------------------------------------------------


class TestOneTime:
    def test_single_success(self):
        g = one_time(verify_token(new_grant(), "t"))
        ev = Evidence().with_token("t")
        assert g.verify(ev) is True
        assert g.valid() is False
        assert g.verify(ev) is False

    def test_failed_verify_does_not_consume(self):
        g = one_time(verify_token(new_grant(), "t"))
        assert g.verify(Evidence().with_token("wrong")) is False
        assert g.valid() is True
        assert g.verify(Evidence().with_token("t")) is True

    def test_not_consumed_by_disallowed_path(self):
        g = one_time(allow_anyone(allow_prefix(new_grant(), "ok/")))
        assert permits(g, ANONYMOUS, "nope/x") is False
        assert g.valid() is True
        assert permits(g, ANONYMOUS, "ok/x") is True
        assert permits(g, ANONYMOUS, "ok/x") is False

    def test_exactly_one_concurrent_winner(self):
        g = one_time(verify_token(new_grant(), "t"))
        ev = Evidence().with_token("t")
        workers = 32
        barrier = threading.Barrier(workers)
        results: list[bool] = []
        lock = threading.Lock()

        def attempt():
            barrier.wait()
            ok = g.verify(ev)
            with lock:
                results.append(ok)

        threads = [threading.Thread(target=attempt) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(results) == workers
        assert g.valid() is False

    def test_none_parent(self):
        g = one_time(None)
        assert g.valid() is False
        assert g.verify(ANONYMOUS) is False


@pytest.mark.parametrize(
    "factory",
    [
        pytest.param(lambda g: allow_prefix(g, "a"), id="prefix"),
        pytest.param(lambda g: allow_files(g, ["a"]), id="files"),
        pytest.param(lambda g: verify_token(g, "a"), id="token"),
        pytest.param(lambda g: verify_email(g, "a"), id="email"),
        pytest.param(lambda g: allow_anyone(g), id="anyone"),
        pytest.param(lambda g: with_cancel(g)[0], id="cancel"),
        pytest.param(lambda g: one_time(g), id="one-time"),
    ],
)
def test_decorators_are_grants(factory):
    assert isinstance(factory(new_grant()), Grant)
