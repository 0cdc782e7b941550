"""
Strategic Scorecard Service
Blueprint registry.
"""

from flask import request

from scorecard.core.exceptions import ValidationError


def json_body(required: bool = True) -> dict:
    """Return the request's JSON object body.

    Raises:
        ValidationError: body missing (when ``required``) or not a JSON object.
    """
    data = request.get_json(silent=True)
    if data is None:
        if required:
            raise ValidationError("Request body must be a JSON object")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def read_uploaded_texts(field: str = "files") -> list[tuple[str, str]]:
    """Uploaded text attachments as ``[(filename, text), ...]``."""
    return [
        (f.filename or "attachment", f.read().decode("utf-8", errors="replace"))
        for f in request.files.getlist(field)
    ]
