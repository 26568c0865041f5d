"""Tests for view-state derivations."""

import pytest
from conftest import DAY_MS, NOW_MS, make_chat, make_message, make_status

from models import ChatUser, Message, Status, UserData
from state.derive import (
    chat_partner,
    chunked,
    current_connections,
    fresh_statuses,
    is_digits_only,
    sort_messages,
    split_statuses,
    status_cutoff_ms,
    status_overview,
    statuses_by_author,
    unique_authors,
)


class TestNumbers:
    """Tests for phone number validation."""

    @pytest.mark.parametrize("number", ["0", "111", "0044123456789"])
    def test_digits(self, number):
        """Test plain digit strings are accepted."""
        assert is_digits_only(number)

    @pytest.mark.parametrize("number", ["", " ", "12 34", "+44", "12-34", "١٢٣"])
    def test_not_digits(self, number):
        """Test anything but ASCII digits is rejected."""
        assert not is_digits_only(number)


class TestChats:
    """Tests for chat derivations."""

    def test_partner_from_either_side(self, me, alice):
        """Test the partner is the other participant whichever slot I am in."""
        assert chat_partner(make_chat("c1", me, alice), "uid-me").user_id == "uid-alice"
        assert chat_partner(make_chat("c2", alice, me), "uid-me").user_id == "uid-alice"

    def test_connections_start_with_me(self, me, alice, bob):
        """Test my id comes first and partners are not repeated."""
        chats = [
            make_chat("c1", alice, me),
            make_chat("c2", me, bob),
            make_chat("c3", me, alice),
        ]

        assert current_connections(chats, "uid-me") == ["uid-me", "uid-alice", "uid-bob"]

    def test_connections_without_chats(self):
        """Test a user with no chats is connected only to themselves."""
        assert current_connections([], "uid-me") == ["uid-me"]
        assert current_connections([], None) == []


class TestMessages:
    """Tests for message ordering."""

    def test_sorted_by_timestamp(self):
        """Test ISO timestamps order chronologically; missing ones go first."""
        messages = [
            make_message("a", "late", "2024-03-01T09:00:00.000+00:00"),
            Message(sent_by="a", message="no time"),
            make_message("b", "early", "2024-02-28T23:59:59.999+00:00"),
        ]

        assert [m.message for m in sort_messages(messages)] == [
            "no time",
            "early",
            "late",
        ]


class TestStatuses:
    """Tests for status derivations."""

    def test_cutoff(self):
        """Test the cutoff is the TTL before now."""
        assert status_cutoff_ms(NOW_MS) == NOW_MS - DAY_MS
        assert status_cutoff_ms(NOW_MS, 1) == NOW_MS - DAY_MS // 24

    def test_fresh_is_strictly_after_cutoff(self, alice):
        """Test statuses at or before the cutoff are dropped."""
        cutoff = NOW_MS - DAY_MS
        statuses = [
            make_status(alice, cutoff - 1),
            make_status(alice, cutoff),
            make_status(alice, cutoff + 1),
            Status(user=ChatUser.from_user(alice), image_url="x"),
        ]

        assert [s.timestamp for s in fresh_statuses(statuses, cutoff)] == [cutoff + 1]

    def test_split(self, me, alice):
        """Test statuses are partitioned by author."""
        mine = make_status(me, 1)
        theirs = make_status(alice, 2)

        assert split_statuses([theirs, mine], "uid-me") == ([mine], [theirs])

    def test_unique_authors_keep_snapshots_apart(self, alice, bob):
        """Test an author appears once per distinct profile snapshot."""
        renamed = UserData(**{**alice.model_dump(), "name": "Alicia"})
        statuses = [
            make_status(alice, 1),
            make_status(bob, 2),
            make_status(alice, 3),
            make_status(renamed, 4),
        ]

        authors = unique_authors(statuses)

        assert [(a.user_id, a.name) for a in authors] == [
            ("uid-alice", "Alice"),
            ("uid-bob", "Bob"),
            ("uid-alice", "Alicia"),
        ]

    def test_overview(self, me, alice):
        """Test the overview separates my snapshot from other authors."""
        overview = status_overview(
            [make_status(alice, 1), make_status(me, 2), make_status(me, 3)], "uid-me"
        )

        assert overview.mine == ChatUser.from_user(me)
        assert overview.others == [ChatUser.from_user(alice)]
        assert not overview.empty

    def test_empty_overview(self):
        """Test no statuses gives an empty overview."""
        assert status_overview([], "uid-me").empty

    def test_by_author_oldest_first(self, alice, bob):
        """Test one author's statuses are ordered by timestamp."""
        statuses = [make_status(alice, 30), make_status(bob, 10), make_status(alice, 20)]

        assert [s.timestamp for s in statuses_by_author(statuses, "uid-alice")] == [20, 30]
        assert statuses_by_author(statuses, "uid-nobody") == []


class TestChunked:
    """Tests for chunked."""

    def test_chunks(self):
        """Test items are split into consecutive bounded lists."""
        assert chunked(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]
        assert chunked([], 30) == []

    def test_invalid_size(self):
        """Test a non-positive size is rejected."""
        with pytest.raises(ValueError):
            chunked([1], 0)
