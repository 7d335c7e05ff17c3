"""
Import / export formats — JSON objects and dotenv files.

JSON import accepts a flat object; scalar values are converted to strings
(``null`` becomes an empty string), nested objects and arrays are rejected.
"""
import re
from enum import Enum
from typing import IO, Union

import orjson
from dotenv import dotenv_values

from .exceptions import ValidationError

_NEEDS_QUOTES = re.compile(r"[\s#'\"\\$]")


class FileFormat(str, Enum):
    JSON = "json"
    DOTENV = "dotenv"

    @classmethod
    def parse(cls, value: Union[str, "FileFormat"]) -> "FileFormat":
        """Return the format named ``value``.

        Raises:
            ValidationError: If ``value`` is neither json nor dotenv.
        """
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"invalid file format {value!r}: must be either "
                f"{cls.JSON.value!r} or {cls.DOTENV.value!r}",
                field="format",
            ) from None


def parse_json(stream: IO) -> dict[str, str]:
    """Parse a flat JSON object into string entries."""
    data = stream.read()
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise ValidationError(f"invalid JSON input: {err}", field="input") from err
    if not isinstance(parsed, dict):
        raise ValidationError("JSON input must be an object", field="input")
    entries: dict[str, str] = {}
    for key, value in parsed.items():
        if isinstance(value, (dict, list)):
            raise ValidationError(
                f"value of {key!r} must be a scalar", field="input", key=key,
            )
        if value is None:
            entries[key] = ""
        elif isinstance(value, str):
            entries[key] = value
        else:
            entries[key] = orjson.dumps(value).decode("utf-8")
    return entries


def parse_dotenv(stream: IO) -> dict[str, str]:
    """Parse dotenv lines (``KEY=value``) into string entries."""
    # no interpolation: values are imported exactly as written
    values = dotenv_values(stream=stream, interpolate=False)
    return {key: value or "" for key, value in values.items()}


def parse(stream: IO, fmt: FileFormat) -> dict[str, str]:
    if fmt is FileFormat.JSON:
        return parse_json(stream)
    return parse_dotenv(stream)


def _quote(value: str) -> str:
    if value and not _NEEDS_QUOTES.search(value):
        return value
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
    )
    return f'"{escaped}"'


def render(entries: dict[str, str], fmt: FileFormat) -> str:
    """Render decrypted entries as JSON or dotenv text."""
    if fmt is FileFormat.JSON:
        return orjson.dumps(
            entries, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
        ).decode("utf-8")
    return "\n".join(f"{key}={_quote(entries[key])}" for key in sorted(entries))
