"""
Tests for poll and vote actions, called directly inside a request context.
"""

import pytest

from polly.actions.polls import (
    create_poll,
    delete_poll,
    get_poll_by_id,
    get_poll_for_edit,
    get_user_polls,
    submit_vote,
    update_poll,
)

from fakes import unique_violation


class TestCreatePoll:

    def test_creates_sanitized_poll(self, request_ctx, store, alice):
        with request_ctx(user=alice):
            result = create_poll({
                "question": "  <b>Best</b> language?  ",
                "options": [" Python ", "", "   ", "R & D"],
            })

        assert result["error"] is None
        poll = result["poll"]
        assert poll.user_id == alice.id
        assert poll.question == "&lt;b&gt;Best&lt;/b&gt; language?"
        assert poll.options == ["Python", "R &amp; D"]

    @pytest.mark.parametrize("payload", [
        {"question": "Only one?", "options": ["Yes"]},
        {"question": "Blank options?", "options": ["A", "  "]},
        {"question": "   ", "options": ["A", "B"]},
        {"options": ["A", "B"]},
        {"question": "No options"},
    ])
    def test_rejects_incomplete_poll(self, request_ctx, store, alice, payload):
        with request_ctx(user=alice):
            result = create_poll(payload)
        assert result["error"] == "Please provide a question and at least two options."
        assert result["poll"] is None
        assert "create" not in store.call_names()

    def test_requires_login(self, request_ctx, store):
        with request_ctx():
            result = create_poll({"question": "Q?", "options": ["A", "B"]})
        assert result["error"] == "You must be logged in to create a poll."
        assert result["code"] == "UNAUTHENTICATED"
        assert store.calls == []

    def test_rate_limited_per_user(self, request_ctx, store, alice, bob):
        payload = {"question": "Q?", "options": ["A", "B"]}
        for _ in range(5):
            with request_ctx(user=alice):
                assert create_poll(payload)["error"] is None

        with request_ctx(user=alice):
            result = create_poll(payload)
        assert result["error"] == "Rate limit exceeded. Please try again later."
        assert result["code"] == "RATE_LIMITED"

        with request_ctx(user=bob):
            assert create_poll(payload)["error"] is None

    def test_data_error_is_passed_through(self, request_ctx, store, alice):
        store.fail_with = 'new row violates row-level security policy for table "polls"'
        with request_ctx(user=alice):
            result = create_poll({"question": "Q?", "options": ["A", "B"]})
        assert result["error"] == 'new row violates row-level security policy for table "polls"'
        assert result["code"] == "EXTERNAL_SERVICE_ERROR"


class TestReadPolls:

    def test_user_polls_are_scoped_and_newest_first(self, request_ctx, store, alice, bob):
        first = store.seed(alice.id, "First?")
        second = store.seed(alice.id, "Second?")
        store.seed(bob.id, "Bob's?")

        with request_ctx(user=alice):
            result = get_user_polls()

        assert [p.id for p in result["polls"]] == [second.id, first.id]
        assert store.calls == [("list_by_owner", alice.id)]

    def test_user_polls_requires_login(self, request_ctx):
        with request_ctx():
            result = get_user_polls()
        assert result == {"polls": [], "error": "Not authenticated", "code": "UNAUTHENTICATED"}

    def test_user_polls_passes_through_data_errors(self, request_ctx, store, alice):
        store.fail_with = "connection refused"
        with request_ctx(user=alice):
            result = get_user_polls()
        assert result["error"] == "connection refused"
        assert result["polls"] == []

    def test_get_poll_by_id_is_not_owner_scoped(self, request_ctx, store, alice, bob):
        poll = store.seed(alice.id)
        with request_ctx(user=bob):
            result = get_poll_by_id(poll.id)
        assert result["poll"] is poll

    def test_get_poll_by_id_not_found(self, request_ctx, store, alice):
        with request_ctx(user=alice):
            result = get_poll_by_id("missing")
        assert result["error"] == "Poll not found"
        assert result["code"] == "NOT_FOUND"

    def test_edit_view_is_owner_only(self, request_ctx, store, alice, bob):
        poll = store.seed(alice.id)
        with request_ctx(user=alice):
            assert get_poll_for_edit(poll.id)["poll"] is poll
        with request_ctx(user=bob):
            result = get_poll_for_edit(poll.id)
        assert result["error"] == "You can only edit your own polls"
        assert result["code"] == "FORBIDDEN"

    def test_edit_view_keeps_data_errors_distinct_from_missing(self, request_ctx, store, alice):
        poll = store.seed(alice.id)
        store.fail_with = "connection reset by upstream"
        with request_ctx(user=alice):
            result = get_poll_for_edit(poll.id)
        assert result == {
            "poll": None,
            "error": "connection reset by upstream",
            "code": "EXTERNAL_SERVICE_ERROR",
        }

    def test_edit_view_missing_poll(self, request_ctx, store, alice):
        with request_ctx(user=alice):
            result = get_poll_for_edit("missing")
        assert result["code"] == "NOT_FOUND"

    def test_failure_results_do_not_share_defaults(self, request_ctx):
        with request_ctx():
            first = get_user_polls()
            first["polls"].append("stale")
            second = get_user_polls()
        assert second["polls"] == []
        assert first["polls"] is not second["polls"]


class TestUpdatePoll:

    def test_owner_can_update(self, request_ctx, store, alice):
        poll = store.seed(alice.id)
        with request_ctx(user=alice):
            result = update_poll(poll.id, {"question": "New?", "options": ["X", "Y", "Z"]})

        assert result["error"] is None
        assert result["poll"].options == ["X", "Y", "Z"]
        assert ("update", poll.id, alice.id, "New?", ["X", "Y", "Z"]) in store.calls

    def test_non_owner_is_refused_without_writing(self, request_ctx, store, alice, bob):
        poll = store.seed(alice.id)
        with request_ctx(user=bob):
            result = update_poll(poll.id, {"question": "Hijack?", "options": ["A", "B"]})

        assert result["error"] == "You can only update your own polls"
        assert "update" not in store.call_names()
        assert store.records[poll.id].question == "Favourite colour?"

    def test_missing_poll(self, request_ctx, store, alice):
        with request_ctx(user=alice):
            result = update_poll("missing", {"question": "Q?", "options": ["A", "B"]})
        assert result["error"] == "Poll not found"

    def test_invalid_fields_checked_before_ownership(self, request_ctx, store, alice):
        poll = store.seed(alice.id)
        with request_ctx(user=alice):
            result = update_poll(poll.id, {"question": "Q?", "options": ["A"]})
        assert result["error"] == "Please provide a question and at least two options."
        assert store.calls == []

    def test_rate_limit(self, request_ctx, store, alice):
        poll = store.seed(alice.id)
        payload = {"question": "Q?", "options": ["A", "B"]}
        for _ in range(10):
            with request_ctx(user=alice):
                assert update_poll(poll.id, payload)["error"] is None
        with request_ctx(user=alice):
            assert update_poll(poll.id, payload)["code"] == "RATE_LIMITED"


class TestDeletePoll:

    def test_owner_deletes(self, request_ctx, store, alice):
        poll = store.seed(alice.id)
        with request_ctx(user=alice):
            result = delete_poll(poll.id)
        assert result == {"error": None}
        assert poll.id not in store.records
        assert ("delete", poll.id, alice.id) in store.calls

    def test_non_owner_delete_is_refused(self, request_ctx, store, alice, bob):
        poll = store.seed(alice.id)
        with request_ctx(user=bob):
            result = delete_poll(poll.id)

        assert result["error"] == "You can only delete your own polls"
        assert result["code"] == "FORBIDDEN"
        assert "delete" not in store.call_names()
        assert poll.id in store.records

    def test_missing_poll(self, request_ctx, store, alice):
        with request_ctx(user=alice):
            assert delete_poll("missing")["error"] == "Poll not found"

    def test_requires_login(self, request_ctx, store, alice):
        poll = store.seed(alice.id)
        with request_ctx():
            result = delete_poll(poll.id)
        assert result["code"] == "UNAUTHENTICATED"
        assert poll.id in store.records


class TestSubmitVote:

    def test_first_vote_is_recorded(self, request_ctx, store, alice, bob):
        poll = store.seed(alice.id, options=("Red", "Blue", "Green"))
        with request_ctx(user=bob):
            result = submit_vote(poll.id, 2)
        assert result["error"] is None
        assert result["vote"].option_index == 2
        assert result["vote"].user_id == bob.id

    def test_second_vote_is_refused(self, request_ctx, store, alice, bob):
        poll = store.seed(alice.id)
        with request_ctx(user=bob):
            submit_vote(poll.id, 0)
        with request_ctx(user=bob):
            result = submit_vote(poll.id, 1)

        assert result["error"] == "You have already voted on this poll"
        assert result["code"] == "CONFLICT"
        assert len(store.votes) == 1

    def test_racing_duplicate_insert_maps_to_conflict(self, request_ctx, store, alice, bob):
        poll = store.seed(alice.id)
        store.vote_insert_error = unique_violation()
        with request_ctx(user=bob):
            result = submit_vote(poll.id, 0)
        assert result["error"] == "You have already voted on this poll"

    @pytest.mark.parametrize("index", [-1, 2, 99])
    def test_option_index_out_of_range(self, request_ctx, store, alice, index):
        poll = store.seed(alice.id)
        with request_ctx(user=alice):
            result = submit_vote(poll.id, index)
        assert result["error"] == "Invalid option selected"
        assert store.votes == []

    def test_poll_not_found(self, request_ctx, store, alice):
        with request_ctx(user=alice):
            result = submit_vote("missing", 0)
        assert result["error"] == "Poll not found"

    def test_requires_login(self, request_ctx, store, alice):
        poll = store.seed(alice.id)
        with request_ctx():
            result = submit_vote(poll.id, 0)
        assert result["error"] == "You must be logged in to vote."
        assert store.calls == []

    def test_other_data_errors_pass_through(self, request_ctx, store, alice):
        poll = store.seed(alice.id)
        store.fail_with = "timeout"
        with request_ctx(user=alice):
            result = submit_vote(poll.id, 0)
        assert result["error"] == "timeout"
        assert result["code"] == "EXTERNAL_SERVICE_ERROR"
