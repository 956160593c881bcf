"""Request parameter coercion shared by the blueprints."""
from flask import abort, request

_TRUE = {'true', '1', 'yes', 'on'}


def parse_book_id(raw):
    try:
        book_id = int(raw)
    except (TypeError, ValueError):
        abort(400, description="Invalid book id")
    if book_id <= 0:
        abort(400, description="Invalid book id")
    return book_id


def parse_bool(raw):
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in _TRUE


def parse_price(raw, default=None):
    """Non-negative float, ``default`` when absent; aborts 400 when malformed."""
    if raw is None or raw == '':
        return default
    if isinstance(raw, bool):
        abort(400, description="Price must be a non-negative number")
    try:
        price = float(raw)
    except (TypeError, ValueError):
        abort(400, description="Price must be a non-negative number")
    if not 0 <= price < float('inf'):
        abort(400, description="Price must be a non-negative number")
    return price


def parse_tags(raw):
    """Tags arrive as a JSON list or a comma separated form value."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(',')
    elif not isinstance(raw, list):
        abort(400, description="Tags must be a list or a comma separated string")
    return [str(tag).strip() for tag in raw if str(tag).strip()]


def parse_int_in_range(raw, low, high):
    """Integer within ``[low, high]`` or ``None``; booleans and floats are rejected."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().lstrip('-').isdigit():
        value = int(raw.strip())
    else:
        return None
    if value < low or value > high:
        return None
    return value


def json_body():
    """The request's JSON object; an absent or unparsable body counts as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")
    return data


def text_field(data, name, strip=True):
    value = data.get(name)
    if value is None:
        return ''
    if not isinstance(value, str):
        abort(400, description=f"{name} must be a string")
    return value.strip() if strip else value
