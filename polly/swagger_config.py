def swagger_template(app=None):
    title = "Polly API"
    version = "1.0.0"

    if app:
        title = app.config.get("SWAGGER_TITLE", title)
        version = app.config.get("SWAGGER_VERSION", version)

    return {
        "swagger": "2.0",
        "info": {"title": title, "version": version},
        "securityDefinitions": {
            "SessionCookie": {
                "type": "apiKey",
                "name": "Cookie",
                "in": "header",
                "description": "sb-access-token cookie set by /auth/login",
            },
            "CsrfHeader": {
                "type": "apiKey",
                "name": "X-CSRF-Token",
                "in": "header",
                "description": "Token from GET /api/csrf",
            },
        },
        "definitions": {
            "ActionResult": {
                "type": "object",
                "properties": {
                    "error": {"type": "string", "x-nullable": True, "example": None},
                    "code": {"type": "string", "example": "RATE_LIMITED"},
                },
            },
            "ErrorResponse": {
                "type": "object",
                "properties": {
                    "success": {"type": "boolean", "example": False},
                    "error": {"type": "string", "example": "Validation error"},
                    "code": {"type": "string", "example": "VALIDATION_ERROR"},
                    "details": {"type": "object"},
                    "request_id": {"type": "string"},
                },
            },
        },
    }
