from flask import abort, request


def request_payload() -> dict:
    """
    Body of a form post or JSON request as a plain dict. Repeated form fields
    (``options``) stay lists; everything else is a single value.
    """
    json_body = request.get_json(silent=True)
    if isinstance(json_body, dict):
        return json_body

    payload = {}
    for key in request.form.keys():
        values = request.form.getlist(key)
        payload[key] = values if key == "options" else values[-1]
    return payload


def validate_or_abort(schema, payload):
    errors = schema.validate(payload)
    if errors:
        abort(
            400,
            description={
                "code": "VALIDATION_ERROR",
                "message": "Validation error",
                "errors": errors,
            },
        )
    return schema.load(payload)
