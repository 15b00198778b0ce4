from flask import current_app

from . import action_result
from .auth import get_current_user, require_user
from ..errors import (
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from ..extensions import get_data, get_rate_limiter
from ..middleware.session_gate import current_session
from ..security.rate_limit import CREATE_POLL, UPDATE_POLL
from ..security.sanitize import sanitize_input
from ..services.data import UNIQUE_VIOLATION
from ..services.supabase import SupabaseError

RATE_LIMITED = "Rate limit exceeded. Please try again later."
INVALID_POLL = "Please provide a question and at least two options."
POLL_NOT_FOUND = "Poll not found"
ALREADY_VOTED = "You have already voted on this poll"


def _polls_for(session):
    return get_data().polls(session.access_token if session else None)


def _clean_poll_fields(payload):
    question = sanitize_input((payload.get("question") or "").strip())
    options = [
        sanitize_input(option.strip())
        for option in (payload.get("options") or [])
        if option and option.strip()
    ]
    if not question or len(options) < 2:
        raise ValidationError(INVALID_POLL)
    return question, options


def _owner_id(polls, poll_id):
    try:
        owner_id = polls.get_owner_id(poll_id)
    except SupabaseError as e:
        raise ExternalServiceError(e.message) from e
    if owner_id is None:
        raise NotFoundError(POLL_NOT_FOUND)
    return owner_id


@action_result(poll=None)
def create_poll(payload):
    user, session = require_user("You must be logged in to create a poll.")

    if not get_rate_limiter().admit_policy(f"create_poll_{user.id}", CREATE_POLL):
        raise RateLimitError(RATE_LIMITED)

    question, options = _clean_poll_fields(payload or {})

    try:
        poll = _polls_for(session).create(user.id, question, options)
    except SupabaseError as e:
        current_app.logger.exception("Data service error creating poll")
        raise ExternalServiceError(e.message) from e

    current_app.logger.info("Poll created poll_id=%s user_id=%s", poll.id, user.id)
    return {"poll": poll}


@action_result(polls=[])
def get_user_polls():
    user = get_current_user()
    if user is None:
        raise AuthorizationError("Not authenticated", code="UNAUTHENTICATED")

    try:
        polls = _polls_for(current_session()).list_by_owner(user.id)
    except SupabaseError as e:
        raise ExternalServiceError(e.message) from e
    return {"polls": polls}


def _load_poll(poll_id):
    try:
        poll = _polls_for(current_session()).get(poll_id)
    except SupabaseError as e:
        raise ExternalServiceError(e.message) from e
    if poll is None:
        raise NotFoundError(POLL_NOT_FOUND)
    return poll


@action_result(poll=None)
def get_poll_by_id(poll_id):
    return {"poll": _load_poll(poll_id)}


@action_result(poll=None)
def get_poll_for_edit(poll_id):
    """Owner-only read backing the edit view."""
    poll = _load_poll(poll_id)

    user = get_current_user()
    if user is None or not poll.is_owned_by(user.id):
        raise AuthorizationError("You can only edit your own polls")
    return {"poll": poll}


@action_result(poll=None)
def update_poll(poll_id, payload):
    user, session = require_user("You must be logged in to update a poll.")

    if not get_rate_limiter().admit_policy(f"update_poll_{user.id}", UPDATE_POLL):
        raise RateLimitError(RATE_LIMITED)

    question, options = _clean_poll_fields(payload or {})

    polls = _polls_for(session)
    if _owner_id(polls, poll_id) != str(user.id):
        current_app.logger.warning("Denied poll update poll_id=%s user_id=%s", poll_id, user.id)
        raise AuthorizationError("You can only update your own polls")

    try:
        # Scoped by owner as well, so a forged id cannot touch another poll.
        poll = polls.update(poll_id, user.id, question, options)
    except SupabaseError as e:
        current_app.logger.exception("Data service error updating poll")
        raise ExternalServiceError(e.message) from e

    if poll is None:
        raise AuthorizationError("You can only update your own polls")
    return {"poll": poll}


@action_result()
def delete_poll(poll_id):
    user, session = require_user("You must be logged in to delete a poll.")

    polls = _polls_for(session)
    if _owner_id(polls, poll_id) != str(user.id):
        current_app.logger.warning("Denied poll delete poll_id=%s user_id=%s", poll_id, user.id)
        raise AuthorizationError("You can only delete your own polls")

    try:
        polls.delete(poll_id, user.id)
    except SupabaseError as e:
        current_app.logger.exception("Data service error deleting poll")
        raise ExternalServiceError(e.message) from e

    current_app.logger.info("Poll deleted poll_id=%s user_id=%s", poll_id, user.id)
    return {}


@action_result(vote=None)
def submit_vote(poll_id, option_index):
    # No anonymous votes.
    user, session = require_user("You must be logged in to vote.")
    polls = _polls_for(session)

    try:
        poll = polls.get(poll_id)
        if poll is None:
            raise NotFoundError(POLL_NOT_FOUND)
        if not poll.has_option(option_index):
            raise ValidationError("Invalid option selected")
        if polls.find_vote(poll_id, user.id) is not None:
            raise ConflictError(ALREADY_VOTED)
        vote = polls.add_vote(poll_id, user.id, option_index)
    except SupabaseError as e:
        if e.code == UNIQUE_VIOLATION or e.status == 409:
            current_app.logger.info("Duplicate vote attempt poll_id=%s user_id=%s", poll_id, user.id)
            raise ConflictError(ALREADY_VOTED) from e
        raise ExternalServiceError(e.message) from e

    return {"vote": vote}
