"""
Parameter normalisation, path templating and error decoration helpers.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, MutableMapping
from urllib.parse import quote, urlencode

from twit_client.exceptions import PathTemplateError, TwitError

_PLACEHOLDER = re.compile(r"/:(\w+)|\{(\w+)\}")


def normalize_params(params: Any) -> dict[str, Any]:
    """Return a copy of ``params`` with sequence values joined by commas."""

    if not isinstance(params, Mapping):
        return {}

    normalized: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            normalized[key] = ",".join(str(item) for item in value)
        else:
            normalized[key] = value
    return normalized


def move_params_into_path(params: MutableMapping[str, Any], path: str) -> str:
    """
    Substitute ``/:name`` and ``{name}`` placeholders in ``path``.

    Consumed keys are removed from ``params``, so callers must pass their own
    copy.

    Raises:
        PathTemplateError: when a placeholder has no (or an empty) value.
    """

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        value = params.get(name)
        if value is None or value == "":
            raise PathTemplateError(
                f"Params object is missing a required parameter for this request: `{name}`"
            )
        del params[name]
        encoded = quote(_to_text(value), safe="")
        return f"/{encoded}" if match.group(1) else encoded

    return _PLACEHOLDER.sub(substitute, path)


def make_query_string(params: Mapping[str, Any]) -> str:
    """Encode ``params`` per RFC 3986 (``%20`` for spaces, ``!'()*`` escaped)."""

    pairs = [(key, _to_text(value)) for key, value in params.items() if value is not None]
    return urlencode(pairs, quote_via=quote, safe="")


def attach_body_info(err: TwitError, body: Any) -> TwitError:
    """Copy ``error``/``errors`` details from a decoded reply onto ``err``."""

    if not isinstance(body, Mapping):
        return err

    err.twitter_reply = body
    if body.get("error"):
        err.message = str(body["error"])
        err.add_errors([{"message": body["error"]}])
    elif body.get("errors"):
        entries = body["errors"]
        if isinstance(entries, Mapping):
            entries = [entries]
        elif isinstance(entries, str):
            entries = [{"message": entries}]
        entries = [entry if isinstance(entry, Mapping) else {"message": str(entry)} for entry in entries]
        if entries:
            first = entries[0]
            err.message = str(first.get("message") or err.message)
            code = first.get("code")
            err.code = code if isinstance(code, int) else err.code
            err.add_errors(entries)
    err.args = (err.message,)
    return err


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
