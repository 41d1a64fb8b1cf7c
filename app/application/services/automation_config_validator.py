"""Validates an automation's config against the JSON Schema declared by its event."""

from __future__ import annotations

from typing import Any

import jsonschema

from app.domain.enums import AutomationEvent
from app.domain.exceptions import AutomationConfigException

DURATION_INTERVALS = ("minute", "hour", "day", "week", "month", "year")

_EMPTY_CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "maxProperties": 0,
}

EVENT_CONFIG_SCHEMAS: dict[AutomationEvent, dict[str, Any]] = {
    AutomationEvent.PUB_IN_STAGE_FOR_DURATION: {
        "type": "object",
        "properties": {
            "duration": {"type": "integer", "minimum": 1},
            "interval": {"enum": list(DURATION_INTERVALS)},
        },
        "required": ["duration", "interval"],
        "additionalProperties": False,
    },
}


def get_config_schema(event: AutomationEvent) -> dict[str, Any] | None:
    """Return the config schema for event; None when the event takes no config."""
    return EVENT_CONFIG_SCHEMAS.get(AutomationEvent(event))


def validate_automation_config(
    event: AutomationEvent, config: dict[str, Any] | None
) -> None:
    """Raise AutomationConfigException if config does not match the event's schema.

    Events without a declared schema accept a missing or empty config only.
    All schema violations are reported, ordered by location.
    """
    schema = get_config_schema(event)
    if schema is None:
        if not config:
            return
        schema = _EMPTY_CONFIG_SCHEMA
    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(config), key=lambda e: e.json_path)
    if errors:
        raise AutomationConfigException(
            event=AutomationEvent(event).value,
            config=config,
            validation_errors=[
                {"loc": e.json_path, "msg": e.message} for e in errors
            ],
        )
