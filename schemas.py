from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Inbound match request (text already extracted by the caller)
class MatchRequest(CamelModel):
    resume_text: str = Field(alias="resumeText")
    job_description_text: str = Field(alias="jobDescriptionText")


# Installed model picked for a request
class ModelDescriptor(CamelModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    size_label: str = Field(default="Unknown", alias="sizeLabel")
    description: str = "AI language model"


# Match report returned to the caller
class MatchResult(CamelModel):
    match_percentage: int = Field(default=0, ge=0, le=100, alias="matchPercentage")
    matched_skills: List[str] = Field(default_factory=list, alias="matchedSkills")
    missing_skills: List[str] = Field(default_factory=list, alias="missingSkills")
    suggestions: List[str] = Field(default_factory=list)
    explanation: str = ""
    model_used: str = Field(default="", alias="modelUsed")
    raw_response: Optional[str] = Field(default=None, alias="rawResponse")


class ResolverState(str, Enum):
    AVAILABLE = "available"
    NO_SUITABLE_MODEL = "no_suitable_model"
    SERVICE_DOWN = "service_down"


# Outcome of probing the inference service
class ServiceStatus(CamelModel):
    state: ResolverState
    selected_model: Optional[ModelDescriptor] = Field(default=None, alias="selectedModel")
    available_models: List[str] = Field(default_factory=list, alias="availableModels")
    error: Optional[str] = None

    @computed_field
    @property
    def running(self) -> bool:
        return self.state != ResolverState.SERVICE_DOWN

    @computed_field(alias="modelLoaded")
    @property
    def model_loaded(self) -> bool:
        return self.state == ResolverState.AVAILABLE


# Free-form chat relay
class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage]
    model: Optional[str] = None


class ChatReply(CamelModel):
    response: str
    model_used: str = Field(alias="modelUsed")


class ErrorOut(BaseModel):
    error: str
