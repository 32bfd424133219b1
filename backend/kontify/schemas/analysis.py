import enum

from pydantic import BaseModel, Field


class Priority(str, enum.Enum):
    low = "Low"
    medium = "Medium"
    high = "High"


class AIAnalysis(BaseModel):
    summary: str
    priority: Priority
    # Kept as the model wrote it; a label outside FiscalSpecialization just matches no advisor.
    suggested_specialization: str


class AnalysisRequest(BaseModel):
    query: str = Field(min_length=1, max_length=20000)


class AnalysisResponse(BaseModel):
    success: bool = True
    analysis: AIAnalysis
