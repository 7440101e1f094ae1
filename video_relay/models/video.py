# models/video.py

"""
Video creation request models and parameter validation
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from video_relay.core.errors import ValidationError

ALLOWED_MODELS = ("sora-2", "sora-2-pro")
ALLOWED_SECONDS = (4, 8, 12)
DEFAULT_MODEL = "sora-2"
DEFAULT_SIZE = "1280x720"
DEFAULT_SECONDS = 4

SIZE_PATTERN = re.compile(r"[0-9]{3,5}x[0-9]{3,5}")
ASPECT_PATTERN = re.compile(r"[0-9]+:[0-9]+")


class VideoParams(BaseModel):
    """Validated generation parameters; only these ever reach the provider"""

    model_config = ConfigDict(frozen=True)

    prompt: str
    model: str = DEFAULT_MODEL
    size: str = DEFAULT_SIZE
    seconds: int = DEFAULT_SECONDS
    aspect_ratio: Optional[str] = None
    seed: Optional[int] = None

    def to_provider_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": self.prompt,
            "size": self.size,
            "seconds": str(self.seconds),
        }
        if self.aspect_ratio is not None:
            payload["aspect_ratio"] = self.aspect_ratio
        if self.seed is not None:
            payload["seed"] = self.seed
        return payload


class VideoCreateRequest(BaseModel):
    """Raw creation body as sent by clients.

    Fields are left untyped so that every problem is reported by
    `to_params` as a readable reason instead of a schema error. Both the
    `size`/`seconds` and the older `resolution`/`durationSeconds` names are
    accepted.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    prompt: Any = None
    model: Any = None
    size: Any = Field(default=None, validation_alias=AliasChoices("size", "resolution"))
    seconds: Any = Field(
        default=None,
        validation_alias=AliasChoices("seconds", "durationSeconds", "duration_seconds"),
    )
    aspect_ratio: Any = Field(
        default=None,
        validation_alias=AliasChoices("aspect_ratio", "aspectRatio"),
    )
    seed: Any = None

    def to_params(self) -> VideoParams:
        return sanitize_video_params(self.model_dump())


def _parse_seconds(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"[0-9]+", value.strip()):
        return int(value.strip())
    return None


def _parse_seed(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"-?[0-9]+", value.strip()):
        return int(value.strip())
    return None


def sanitize_video_params(raw: Dict[str, Any]) -> VideoParams:
    """Validate raw creation fields, collecting every problem.

    Raises ValidationError carrying the full list of reasons; nothing is
    coerced into range.
    """
    errors: List[str] = []

    prompt = raw.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        errors.append("prompt is required")
        prompt = ""

    model = raw.get("model")
    if model is None:
        model = DEFAULT_MODEL
    if model not in ALLOWED_MODELS:
        errors.append(f"model must be one of {', '.join(ALLOWED_MODELS)}")

    size = raw.get("size")
    if size is None:
        size = DEFAULT_SIZE
    if not isinstance(size, str) or not SIZE_PATTERN.fullmatch(size):
        errors.append("size must follow WIDTHxHEIGHT")

    seconds_raw = raw.get("seconds")
    seconds = DEFAULT_SECONDS if seconds_raw is None else _parse_seconds(seconds_raw)
    if seconds not in ALLOWED_SECONDS:
        errors.append(f"seconds must be one of {', '.join(str(s) for s in ALLOWED_SECONDS)}")

    aspect_ratio = raw.get("aspect_ratio")
    if aspect_ratio in ("", None):
        aspect_ratio = None
    elif not isinstance(aspect_ratio, str) or not ASPECT_PATTERN.fullmatch(aspect_ratio):
        errors.append("aspectRatio must follow W:H")

    seed_raw = raw.get("seed")
    seed = None
    if seed_raw not in ("", None):
        seed = _parse_seed(seed_raw)
        if seed is None or seed < 0:
            errors.append("seed must be a non-negative integer")

    if errors:
        raise ValidationError(errors)

    return VideoParams(
        prompt=prompt.strip(),
        model=model,
        size=size,
        seconds=seconds,
        aspect_ratio=aspect_ratio,
        seed=seed,
    )
