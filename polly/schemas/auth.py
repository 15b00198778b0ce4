from marshmallow import EXCLUDE, Schema, fields


class _FormSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class LoginSchema(_FormSchema):
    """
    Raw login form. Emptiness and format are judged by the login action so
    its messages stay the same for form posts and JSON.
    """
    email = fields.Str(load_default="")
    password = fields.Str(load_default="")
    csrf_token = fields.Str()


class RegisterSchema(LoginSchema):
    name = fields.Str(load_default="")


class PasswordCheckSchema(_FormSchema):
    password = fields.Str(required=True)


class PasswordStrengthSchema(Schema):
    valid = fields.Bool(required=True)
    strength = fields.Str(required=True)


class UserSchema(Schema):
    id = fields.Str()
    email = fields.Str(allow_none=True)
    name = fields.Function(lambda user: (user.user_metadata or {}).get("name"))
