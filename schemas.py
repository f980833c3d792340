import logging
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class FeaturePayload(BaseModel):
    """Base for the structured objects returned to the front end.

    Every structured field has a default, so a payload can always be built,
    even from an empty dict. Unknown keys returned by the model are kept.
    """

    model_config = ConfigDict(extra="allow")

    # Key that receives the raw model text when parsing fails.
    raw_field: ClassVar[str] = "rawResponse"

    @classmethod
    def _dump(cls, model: "FeaturePayload") -> Dict[str, Any]:
        # Only an unset raw field is omitted; null values the model returned are kept.
        if getattr(model, cls.raw_field, None) is None:
            return model.model_dump(exclude={cls.raw_field})
        return model.model_dump()

    @classmethod
    def default(cls, raw_text: str) -> Dict[str, Any]:
        return cls._dump(cls.model_validate({cls.raw_field: raw_text}))

    @classmethod
    def coerce(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate parsed JSON, replacing only the invalid top-level fields with defaults."""
        try:
            return cls._dump(cls.model_validate(data))
        except ValidationError as e:
            bad_fields = {err["loc"][0] for err in e.errors() if err.get("loc")}
            logger.warning(f"{cls.__name__}: replacing invalid fields with defaults: {sorted(map(str, bad_fields))}")
            cleaned = {k: v for k, v in data.items() if k not in bad_fields}
            return cls._dump(cls.model_validate(cleaned))


class MarksDistribution(BaseModel):
    model_config = ConfigDict(extra="allow")

    twoMarks: List[Any] = Field(default_factory=list)
    threeMarks: List[Any] = Field(default_factory=list)
    fourteenMarks: List[Any] = Field(default_factory=list)
    sixteenMarks: List[Any] = Field(default_factory=list)


class EssentialsPayload(FeaturePayload):
    raw_field: ClassVar[str] = "summary"

    summary: Optional[str] = None
    creativeTopics: List[Any] = Field(default_factory=list)
    theoryTopics: List[Any] = Field(default_factory=list)
    numericalTopics: List[Any] = Field(default_factory=list)
    marksDistribution: MarksDistribution = Field(default_factory=MarksDistribution)


class SurvivalPlanPayload(FeaturePayload):
    rawResponse: Optional[str] = None
    weeklyPlan: List[Any] = Field(default_factory=list)
    dailySchedule: List[Any] = Field(default_factory=list)
    skillRoadmap: List[Any] = Field(default_factory=list)
    revisionPlan: List[Any] = Field(default_factory=list)
    examStrategy: List[Any] = Field(default_factory=list)
    productivityRules: List[Any] = Field(default_factory=list)


class RevisionPlanPayload(FeaturePayload):
    rawResponse: Optional[str] = None
    weeks: List[Any] = Field(default_factory=list)
    studyTips: List[Any] = Field(default_factory=list)
    resources: List[Any] = Field(default_factory=list)
