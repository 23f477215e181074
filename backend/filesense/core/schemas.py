from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Any, Dict, List, Literal, Optional, Union


class NumericColumnProfile(BaseModel):
    type: Literal["numeric"] = "numeric"
    min: float
    max: float
    avg: float  # rounded to 2 decimals, half away from zero
    missing: int


class CategoricalColumnProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["categorical"] = "categorical"
    unique_count: int = Field(alias="uniqueCount")
    top_values: List[str] = Field(alias="topValues")  # "value (pct%)", at most 5
    missing: int


ColumnProfile = Annotated[
    Union[NumericColumnProfile, CategoricalColumnProfile],
    Field(discriminator="type"),
]


class DatasetProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    row_count: int = Field(alias="rowCount")
    columns: Dict[str, ColumnProfile]

    def to_wire(self) -> Dict[str, Any]:
        """Dump with the camelCase keys used in prompts and API responses."""
        return self.model_dump(by_alias=True)


class AnalyzeRequest(BaseModel):
    """Body of POST /api/analyze. `data` is checked by the pipeline, not here."""
    model_config = ConfigDict(populate_by_name=True)

    data: Any = None
    file_name: str = Field(default="", alias="fileName")
    language: Optional[str] = None


class ProfileRequest(BaseModel):
    data: Any = None
    language: Optional[str] = None


# Model output contract

class KPI(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    value: Union[str, int, float]
    sub_value: Union[str, int, float] = Field(alias="subValue")
    trend: Literal["up", "down", "neutral"]
    color: Optional[Literal["green", "red", "blue"]] = None


class ChartPoint(BaseModel):
    label: Union[str, int, float]
    value: float


class Chart(BaseModel):
    title: str
    type: Literal["bar", "line", "pie", "area"]
    description: str
    data: List[ChartPoint]


class Recommendation(BaseModel):
    title: str
    text: str
    impact: Literal["high", "medium"]


class AIResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    analysis_title: str = Field(alias="analysisTitle")
    summary: str
    kpis: List[KPI]
    charts: List[Chart]
    recommendations: List[Recommendation]


class ReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result: AIResult
    file_name: str = Field(default="", alias="fileName")
    language: Optional[str] = None
