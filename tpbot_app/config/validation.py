"""Configuration validation utilities."""

import re
from dataclasses import dataclass, fields
from typing import Any

from .defaults import TimingParams
from .settings import RECORD_KEYS

_PRICE_SEPARATORS = re.compile(r"[,\s]+")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def parse_price_string(text: str) -> list[int]:
    """
    Parse a user-entered price list such as "2800, 3200 4500".

    Tokens are split on commas and whitespace; tokens that are not integers
    are skipped. Order is preserved.
    """
    prices = []
    for token in _PRICE_SEPARATORS.split((text or "").strip()):
        if token.isdigit():
            prices.append(int(token))
    return prices


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _normalize_keys(params: dict[str, Any]) -> dict[str, Any]:
    return {RECORD_KEYS.get(key, key): value for key, value in params.items()}


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_bot_config(params: dict[str, Any]) -> list[ValidationError]:
        """Validate run configuration fields (camelCase or snake_case keys)."""
        errors = []
        params = _normalize_keys(params)

        if "ticket_count" in params:
            value = params["ticket_count"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="ticket_count",
                    message="Must be a positive integer",
                    value=value
                ))

        if "target_prices" in params:
            value = params["target_prices"]
            if not isinstance(value, (list, tuple)) or not all(
                _is_int(price) and price > 0 for price in value
            ):
                errors.append(ValidationError(
                    field="target_prices",
                    message="Must be a list of positive integers",
                    value=value
                ))

        if "priority_price" in params:
            value = params["priority_price"]
            if value is not None and (not _is_int(value) or value <= 0):
                errors.append(ValidationError(
                    field="priority_price",
                    message="Must be a positive integer or null",
                    value=value
                ))

        for flag in ("running", "grab_all", "debug"):
            if flag in params and not isinstance(params[flag], bool):
                errors.append(ValidationError(
                    field=flag,
                    message="Must be a boolean",
                    value=params[flag]
                ))

        for text in ("account", "password", "url"):
            if text in params and params[text] is not None and not isinstance(params[text], str):
                errors.append(ValidationError(
                    field=text,
                    message="Must be a string",
                    value=params[text]
                ))

        return errors

    @staticmethod
    def validate_start_request(params: dict[str, Any]) -> list[ValidationError]:
        """Validate a START command: a usable URL and a price mode that can match."""
        errors = ConfigValidator.validate_bot_config(params)
        params = _normalize_keys(params)

        url = params.get("url") or ""
        if not isinstance(url, str) or not url.strip().startswith("http"):
            errors.append(ValidationError(
                field="url",
                message="Must be an http(s) URL",
                value=url
            ))

        if not params.get("grab_all") and not params.get("target_prices"):
            errors.append(ValidationError(
                field="target_prices",
                message="Target prices are required unless grab_all is enabled",
                value=params.get("target_prices")
            ))

        return errors

    @staticmethod
    def validate_timing_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate timing overrides: known fields, positive integers."""
        errors = []
        known = {f.name for f in fields(TimingParams)}

        for name, value in params.items():
            if name not in known:
                errors.append(ValidationError(
                    field=name,
                    message="Unknown timing parameter",
                    value=value
                ))
            elif not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field=name,
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate a complete configuration document."""
        errors = []

        if "timing" in config:
            errors.extend(ConfigValidator.validate_timing_params(config["timing"]))

        if "bot" in config:
            errors.extend(ConfigValidator.validate_bot_config(config["bot"]))

        return errors
