from pydantic import BaseModel, Field, field_validator


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class StudentBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    grade: str | None = Field(default=None, max_length=50)
    school: str | None = Field(default=None, max_length=200)
    board: str | None = Field(default=None, max_length=50)
    fees: int | None = Field(default=None, ge=0)
    num_of_classes_per_week: int | None = Field(
        default=None, ge=0, le=100, validation_alias="numOfClassesPerWeek"
    )

    model_config = {"populate_by_name": True}

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("grade", "school", "board")
    @classmethod
    def normalize_labels(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class StudentCreate(StudentBase):
    pass


class StudentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    grade: str | None = Field(default=None, max_length=50)
    school: str | None = Field(default=None, max_length=200)
    board: str | None = Field(default=None, max_length=50)
    fees: int | None = Field(default=None, ge=0)
    num_of_classes_per_week: int | None = Field(
        default=None, ge=0, le=100, validation_alias="numOfClassesPerWeek"
    )

    model_config = {"populate_by_name": True}

    @field_validator("grade", "school", "board")
    @classmethod
    def normalize_labels(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class StudentOut(BaseModel):
    id: int
    teacher_id: int
    name: str
    grade: str | None
    school: str | None
    board: str | None
    fees: int | None
    num_of_classes_per_week: int | None = Field(serialization_alias="numOfClassesPerWeek")

    model_config = {"from_attributes": True}
