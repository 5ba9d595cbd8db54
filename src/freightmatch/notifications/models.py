import re
from typing import Any, Literal

from pydantic import BaseModel, Field

EXPO_TOKEN_PATTERN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[[^\]]+\]$")


def is_expo_push_token(token: str | None) -> bool:
    return token is not None and EXPO_TOKEN_PATTERN.match(token) is not None


class PushMessage(BaseModel):
    to: str
    title: str
    body: str
    data: dict[str, Any] = Field(default_factory=dict)
    sound: Literal["default"] | None = "default"
    priority: Literal["default", "normal", "high"] = "high"
