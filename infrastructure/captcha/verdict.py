"""
Verdict: the normalized result of one hCaptcha verification.

Mirrors the siteverify JSON body. Local failures (empty token, unreadable
form, transport or decode errors) are carried in ``error_codes`` next to
the remote service's own codes, always with ``success=False``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class Verdict(BaseModel):
    """siteverify response: ``success``, ``challenge_ts``, ``hostname``,
    ``error-codes`` and ``credit``. Missing or null fields fall back to their
    defaults and unknown fields are ignored. The booleans only accept JSON
    ``true``/``false``; ``"true"`` or ``1`` fail decoding."""

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    success: bool = Field(default=False, strict=True)
    challenge_ts: str = ""
    hostname: str = ""
    error_codes: tuple[str, ...] = Field(default=(), alias="error-codes")
    credit: bool = Field(default=False, strict=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default()
        return value

    @classmethod
    def failure(cls, *messages: str) -> "Verdict":
        """Build an unsuccessful verdict carrying ``messages`` as error codes."""
        return cls(success=False, error_codes=tuple(messages))

    def to_dict(self) -> dict:
        """Return the wire shape, omitting empty ``error-codes`` and false ``credit``."""
        data = self.model_dump(by_alias=True)
        if not data["error-codes"]:
            data.pop("error-codes")
        else:
            data["error-codes"] = list(data["error-codes"])
        if not data["credit"]:
            data.pop("credit")
        return data
