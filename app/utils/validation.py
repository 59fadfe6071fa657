from ..errors import InputInvalid


def validate_or_abort(schema, payload):
    """Load ``payload`` through ``schema`` or raise INPUT_INVALID with the field errors."""
    errors = schema.validate(payload)
    if errors:
        raise InputInvalid(details=errors)
    return schema.load(payload)
