from marshmallow import EXCLUDE, Schema, fields, validate


class PollFormSchema(Schema):
    """Question and options as typed by the user; the poll actions sanitize them."""

    class Meta:
        unknown = EXCLUDE

    question = fields.Str(load_default="")
    options = fields.List(fields.Str(), load_default=list)


class VoteSubmitSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    option_index = fields.Int(required=True, strict=False, validate=validate.Range(min=0))


class PollReadSchema(Schema):
    id = fields.Str()
    user_id = fields.Str()
    question = fields.Str()
    options = fields.List(fields.Str())
    created_at = fields.Str(allow_none=True)


class VoteReadSchema(Schema):
    poll_id = fields.Str()
    user_id = fields.Str()
    option_index = fields.Int()
