"""Wire models for the Vertex AI ``generateContent`` endpoint.

Only the fields prompt2json sends or reads are modelled. Field names are
snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, JsonValue
from pydantic.alias_generators import to_camel

from prompt2json.constants import RESPONSE_MIME_TYPE


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Request ---


class TextPart(_WireModel):
    text: str


class InlineData(_WireModel):
    mime_type: str
    data: str


class InlineDataPart(_WireModel):
    inline_data: InlineData


class SystemInstruction(_WireModel):
    parts: list[TextPart]


class Content(_WireModel):
    role: str
    parts: list[TextPart | InlineDataPart]


class GenerationConfig(_WireModel):
    response_mime_type: str = RESPONSE_MIME_TYPE
    response_json_schema: JsonValue


class GenerateContentRequest(_WireModel):
    system_instruction: SystemInstruction
    contents: list[Content]
    generation_config: GenerationConfig

    def to_json(self) -> bytes:
        """Serialize with wire (camelCase) field names."""
        return self.model_dump_json(by_alias=True).encode("utf-8")


# --- Response ---


class ResponsePart(_WireModel):
    text: str = ""


class CandidateContent(_WireModel):
    parts: list[ResponsePart] = Field(default_factory=list)


class Candidate(_WireModel):
    content: CandidateContent | None = None
    finish_reason: str = ""
    finish_message: str = ""

    @property
    def parts(self) -> list[ResponsePart]:
        return self.content.parts if self.content is not None else []

    @property
    def text(self) -> str:
        """All text fragments concatenated in order."""
        return "".join(part.text for part in self.parts)


class UsageMetadata(_WireModel):
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


class GenerateContentResponse(_WireModel):
    candidates: list[Candidate] = Field(default_factory=list)
    usage_metadata: UsageMetadata = Field(default_factory=UsageMetadata)
