from flask import Blueprint, current_app, redirect
from flasgger import swag_from

from ...actions import polls as poll_actions
from ...errors import status_for
from ...schemas.poll import PollFormSchema, PollReadSchema, VoteReadSchema, VoteSubmitSchema
from ...utils.validation import request_payload, validate_or_abort

polls_bp = Blueprint("polls", __name__)

poll_form_schema = PollFormSchema()
vote_submit_schema = VoteSubmitSchema()
poll_read_schema = PollReadSchema()
poll_read_many_schema = PollReadSchema(many=True)
vote_read_schema = VoteReadSchema()

_DUMPERS = {
    "poll": poll_read_schema,
    "polls": poll_read_many_schema,
    "vote": vote_read_schema,
}


def _render(result: dict, success_status: int = 200):
    body = {}
    for key, value in result.items():
        schema = _DUMPERS.get(key)
        body[key] = schema.dump(value) if schema is not None and value is not None else value
    return body, status_for(result, success_status)


@polls_bp.post("/")
@swag_from({
    "tags": ["Polls"],
    "summary": "Create a poll",
    "description": "Rate limited to 5 per minute per user. Question and options are "
                   "HTML-escaped; at least two non-empty options are required.",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "question": {"type": "string", "example": "Tabs or spaces?"},
                "options": {"type": "array", "items": {"type": "string"}, "example": ["Tabs", "Spaces"]},
            },
        },
    }],
    "responses": {
        201: {"description": "Created"},
        400: {"description": "Validation error"},
        401: {"description": "Not logged in"},
        429: {"description": "Rate limit exceeded"},
    },
})
def create_poll():
    payload = validate_or_abort(poll_form_schema, request_payload())
    return _render(poll_actions.create_poll(payload), success_status=201)


@polls_bp.get("/")
@swag_from({
    "tags": ["Polls"],
    "summary": "List the caller's polls, newest first",
    "responses": {200: {"description": "OK"}, 401: {"description": "Not authenticated"}},
})
def list_my_polls():
    return _render(poll_actions.get_user_polls())


@polls_bp.get("/<poll_id>")
@swag_from({
    "tags": ["Polls"],
    "summary": "Get a poll by id (any logged-in viewer)",
    "responses": {200: {"description": "OK"}, 404: {"description": "Poll not found"}},
})
def get_poll(poll_id):
    return _render(poll_actions.get_poll_by_id(poll_id))


@polls_bp.get("/<poll_id>/edit")
@swag_from({
    "tags": ["Polls"],
    "summary": "Load a poll for editing (owner only)",
    "description": "Non-owners are redirected to the polls index.",
    "responses": {200: {"description": "OK"}, 302: {"description": "Not the owner"}, 404: {"description": "Poll not found"}},
})
def edit_poll(poll_id):
    result = poll_actions.get_poll_for_edit(poll_id)
    if result.get("code") in ("FORBIDDEN", "UNAUTHENTICATED"):
        return redirect(current_app.config.get("POLLS_INDEX_PATH", "/polls"))
    return _render(result)


@polls_bp.put("/<poll_id>")
@swag_from({
    "tags": ["Polls"],
    "summary": "Update a poll (owner only)",
    "description": "Rate limited to 10 per minute per user.",
    "responses": {
        200: {"description": "Updated"},
        400: {"description": "Validation error"},
        403: {"description": "Not the owner"},
        404: {"description": "Poll not found"},
        429: {"description": "Rate limit exceeded"},
    },
})
def update_poll(poll_id):
    payload = validate_or_abort(poll_form_schema, request_payload())
    return _render(poll_actions.update_poll(poll_id, payload))


@polls_bp.delete("/<poll_id>")
@swag_from({
    "tags": ["Polls"],
    "summary": "Delete a poll (owner only)",
    "responses": {200: {"description": "Deleted"}, 403: {"description": "Not the owner"}, 404: {"description": "Poll not found"}},
})
def delete_poll(poll_id):
    return _render(poll_actions.delete_poll(poll_id))


@polls_bp.post("/<poll_id>/vote")
@swag_from({
    "tags": ["Voting"],
    "summary": "Vote on a poll (one vote per user)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {"option_index": {"type": "integer", "example": 0}},
            "required": ["option_index"],
        },
    }],
    "responses": {
        201: {"description": "Vote recorded"},
        401: {"description": "Not logged in"},
        404: {"description": "Poll not found"},
        409: {"description": "Already voted"},
    },
})
def submit_vote(poll_id):
    payload = validate_or_abort(vote_submit_schema, request_payload())
    return _render(poll_actions.submit_vote(poll_id, payload["option_index"]), success_status=201)
