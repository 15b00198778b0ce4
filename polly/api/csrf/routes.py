from flask import Blueprint
from flasgger import swag_from

from ...security.csrf import issue_token

csrf_bp = Blueprint("csrf", __name__)


@csrf_bp.get("")
@swag_from({
    "tags": ["CSRF"],
    "summary": "Issue a fresh CSRF token",
    "description": "Sets the httpOnly csrf_token cookie and returns the same token so a "
                   "script can send it back with the next form submission.",
    "responses": {200: {"description": "{\"token\": \"<64 hex chars>\"}"}},
})
def issue():
    return {"token": issue_token()}, 200
