"""Tests for the request/snapshot value types."""

from git_metafix.models import (
    MatchCounts,
    RemoteRef,
    RewriteRequest,
    TagRef,
    pick_remote,
)


class TestRewriteRequest:
    def test_blank_values_normalise_to_none(self):
        request = RewriteRequest(old_email="  ", new_email="", old_name=" Old ")

        assert request.old_email is None
        assert request.new_email is None
        assert request.old_name == "Old"

    def test_wants_flags_require_both_halves(self):
        request = RewriteRequest(old_email="a@b.co", old_name="Old", new_name="New")

        assert not request.wants_email
        assert request.wants_name

    def test_is_empty(self):
        assert RewriteRequest().is_empty
        assert not RewriteRequest(new_name="New").is_empty


class TestPickRemote:
    def test_prefers_named_remote(self):
        remotes = [
            RemoteRef("upstream", "u-url", "u-url"),
            RemoteRef("origin", "o-url", "o-url"),
        ]
        assert pick_remote(remotes).name == "origin"

    def test_falls_back_to_first_remote(self):
        remotes = [RemoteRef("upstream", "u-url", "u-url"), RemoteRef("fork", "f", "f")]
        assert pick_remote(remotes).name == "upstream"

    def test_no_remotes(self):
        assert pick_remote([]) is None


def test_remote_url_prefers_fetch_url():
    assert RemoteRef("origin", "fetch-url", "push-url").url == "fetch-url"
    assert RemoteRef("origin", "", "push-url").url == "push-url"


def test_tag_short_id():
    assert TagRef("v1.0", "0123456789abcdef").short_id == "0123456"


def test_match_counts_empty_ignores_partial_matches():
    assert MatchCounts(partial_email_matches=3).is_empty
    assert not MatchCounts(name_matches=1).is_empty
