class ValidationError(Exception):
    """Raised when a model fails its precondition checks.

    `errors` maps a field name to the list of messages for that field,
    e.g. {'text': ["can't be blank"]}.
    """

    def __init__(self, errors):
        self.errors = errors
        super().__init__('; '.join(
            f"{field} {msg}" for field, msgs in errors.items() for msg in msgs
        ))


def ensure_valid(*objects) -> None:
    errors = {}
    for obj in objects:
        for field, msgs in obj.validate().items():
            errors.setdefault(field, []).extend(msgs)
    if errors:
        raise ValidationError(errors)
