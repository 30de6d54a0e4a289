import math
from datetime import date, datetime, timezone

from bson import ObjectId
from pymongo.collection import Collection

from movies_api.core.errors import ValidationFailed, build_field_error


MISSING = object()
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def is_blank(value: object):
    return value is MISSING or value is None or (isinstance(value, str) and not value.strip())


def check_string(data: dict, path: str, errors: dict, required: bool = False, minlength: int | None = None, maxlength: int | None = None):
    """
    Validate a string field.

    Args:
        data (dict): Submitted document.
        path (str): Field name.
        errors (dict): Error entries collected so far, updated in place.
        required (bool): Whether the field must be present.
        minlength (int | None): Minimum length.
        maxlength (int | None): Maximum length.

    Returns:
        str | None: Valid value, or None when missing or invalid.
    """
    value = data.get(path, MISSING)
    if is_blank(value):
        if required:
            errors[path] = build_field_error(path, "required", f"Path `{path}` is required.")
        return None

    if not isinstance(value, str):
        errors[path] = build_field_error(path, "String", f"Cast to String failed for value \"{value}\" at path \"{path}\"", value)
        return None

    if minlength is not None and len(value) < minlength:
        message = f"Path `{path}` (`{value}`) is shorter than the minimum allowed length ({minlength})."
        errors[path] = build_field_error(path, "minlength", message, value)
        return None

    if maxlength is not None and len(value) > maxlength:
        message = f"Path `{path}` (`{value}`) is longer than the maximum allowed length ({maxlength})."
        errors[path] = build_field_error(path, "maxlength", message, value)
        return None

    return value


def check_enum(data: dict, path: str, choices: tuple, errors: dict, required: bool = False):
    value = data.get(path, MISSING)
    if is_blank(value):
        if required:
            errors[path] = build_field_error(path, "required", f"Path `{path}` is required.")
        return None

    if value not in choices:
        message = f"`{value}` is not a valid enum value for path `{path}`."
        errors[path] = build_field_error(path, "enum", message, value)
        return None

    return value


def is_finite(number: int | float):
    try:
        return math.isfinite(number)
    except OverflowError:
        return False


def check_number(data: dict, path: str, errors: dict, minimum: float | None = None, maximum: float | None = None, integer: bool = False):
    """
    Validate an optional numeric field.

    Numeric strings are cast the way the store driver would cast them.

    Args:
        data (dict): Submitted document.
        path (str): Field name.
        errors (dict): Error entries collected so far, updated in place.
        minimum (float | None): Inclusive lower bound.
        maximum (float | None): Inclusive upper bound.
        integer (bool): Whether the value must be a whole number.

    Returns:
        int | float | None: Valid value, or None when missing or invalid.
    """
    value = data.get(path, MISSING)
    if is_blank(value):
        return None

    number = value
    if isinstance(value, bool):
        number = None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = None
    elif not isinstance(value, (int, float)):
        number = None

    if number is None:
        errors[path] = build_field_error(path, "Number", f"Cast to Number failed for value \"{value}\" at path \"{path}\"", value)
        return None

    if not is_finite(number):
        shown = value if isinstance(value, str) else str(value)
        errors[path] = build_field_error(path, "Number", f"Cast to Number failed for value \"{shown}\" at path \"{path}\"", shown)
        return None

    if integer:
        if isinstance(number, float) and not number.is_integer():
            errors[path] = build_field_error(path, "integer", f"Path `{path}` ({value}) is not an integer.", value)
            return None
        number = int(number)
        if not INT64_MIN <= number <= INT64_MAX:
            errors[path] = build_field_error(path, "Number", f"Path `{path}` ({value}) does not fit in a 64-bit integer.", str(value))
            return None
    elif isinstance(number, float) and number.is_integer() and isinstance(value, str):
        number = int(number)

    if minimum is not None and number < minimum:
        message = f"Path `{path}` ({value}) is less than minimum allowed value ({minimum})."
        errors[path] = build_field_error(path, "min", message, value)
        return None

    if maximum is not None and number > maximum:
        message = f"Path `{path}` ({value}) is more than maximum allowed value ({maximum})."
        errors[path] = build_field_error(path, "max", message, value)
        return None

    return number


def parse_date(value: object):
    """
    Parse a date-only value.

    Args:
        value (Any): ``YYYY-MM-DD`` string, ISO-8601 datetime string, date or datetime.

    Returns:
        datetime | None: Midnight of that day, or None when it cannot be parsed.
    """
    if isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    string_value = value.strip()
    try:
        parsed = datetime.strptime(string_value[:10], "%Y-%m-%d")
    except ValueError:
        return None
    if len(string_value) > 10:
        try:
            datetime.fromisoformat(string_value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return parsed


def check_date(data: dict, path: str, errors: dict):
    value = data.get(path, MISSING)
    if is_blank(value):
        return None

    parsed = parse_date(value)
    if parsed is None:
        errors[path] = build_field_error(path, "Date", f"Cast to Date failed for value \"{value}\" at path \"{path}\"", value)
    return parsed


def check_unique(collection: Collection, path: str, value: object, errors: dict, entity: str, current_id: ObjectId | None = None):
    """
    Report a validation error when another document already uses ``value``.

    Args:
        collection (Collection): Collection to search.
        path (str): Field that must be unique.
        value (Any): Candidate value, skipped when None.
        errors (dict): Error entries collected so far, updated in place.
        entity (str): Entity name used in the message.
        current_id (ObjectId | None): Identifier of the document being updated.
    """
    if value is None or path in errors:
        return

    query = {path: value}
    if current_id is not None:
        query["_id"] = {"$ne": current_id}

    if collection.find_one(query, projection={"_id": 1}) is not None:
        errors[path] = build_field_error(path, "unique", f"{entity} {value} already exists", value)


def raise_for_errors(entity: str, errors: dict):
    if errors:
        raise ValidationFailed(entity, errors)


def utc_now():
    """
    Return the current UTC time as stored by MongoDB (naive, millisecond precision).

    Returns:
        datetime: Current timestamp.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)
