from typing import Annotated
from datetime import datetime
from pydantic import BaseModel, Field, StringConstraints

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=120)]
# Body weight in pounds; zero means "not set"
WeightLbs = Annotated[float, Field(ge=0, le=1500)]
HeightIn = Annotated[float, Field(gt=0, le=120)]


class ProfileUpdate(BaseModel):
    name: NameStr | None = None
    weight_lbs: WeightLbs | None = None
    height_inches: HeightIn | None = None


class ProfileRead(BaseModel):
    id: int
    name: str
    weight_lbs: float | None = None
    height_inches: float | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
