from typing import List, Literal, Optional

from pydantic import BaseModel

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    role: Role
    content: str


class GenerationOptions(BaseModel):
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def resolve(self, default_temperature: float, default_max_tokens: int):
        """Return (temperature, max_tokens), filling unset values with the adapter defaults."""
        temperature = self.temperature if self.temperature is not None else default_temperature
        max_tokens = self.max_tokens if self.max_tokens is not None else default_max_tokens
        return temperature, max_tokens


def as_messages(messages: List) -> List[Message]:
    """Accept Message instances or plain {"role", "content"} dicts."""
    return [m if isinstance(m, Message) else Message.model_validate(m) for m in messages]
