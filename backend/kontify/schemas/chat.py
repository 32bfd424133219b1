from typing import Literal

from pydantic import BaseModel, Field


class ChatHistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1, max_length=4000)


class ChatCompletionRequest(BaseModel):
    history: list[ChatHistoryMessage] = Field(min_length=1, max_length=20)


class ChatCompletionResponse(BaseModel):
    success: bool = True
    reply: str
