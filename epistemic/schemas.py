from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ToggleSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary: bool = False
    practiceQuestions: bool = False
    vocabulary: bool = False
    resources: bool = Field(False, description="Include links to additional articles/videos")


class ResponseStatus(str, Enum):
    idle = "idle"
    pending = "pending"
    succeeded = "succeeded"
    failed = "failed"


class ResponseState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ResponseStatus = ResponseStatus.idle
    text: str = ""

    @classmethod
    def succeeded(cls, text: str) -> "ResponseState":
        return cls(status=ResponseStatus.succeeded, text=text)

    @classmethod
    def failed(cls, message: str) -> "ResponseState":
        return cls(status=ResponseStatus.failed, text=message)


IDLE = ResponseState()
PENDING = ResponseState(status=ResponseStatus.pending)


class StudySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str = ""
    toggles: ToggleSet = Field(default_factory=ToggleSet)
    response: ResponseState = IDLE
    busy: bool = False
    recognizedText: str = ""


class TopicRequest(BaseModel):
    topic: str = Field("", description="Text field contents; may be empty")


class ScanRequest(BaseModel):
    imageBase64: str = Field(..., min_length=1, description="Scanned page image, base64 encoded")
    mimeType: str = Field("image/jpeg", min_length=1)
