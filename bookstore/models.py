from pydantic import BaseModel, Field, field_validator

# column bounds: year is a 32-bit INTEGER, price is NUMERIC(10, 2)
MIN_YEAR = -9999
MAX_YEAR = 9999


class BookFields(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    author: str = Field(min_length=1, max_length=100)
    year: int = Field(ge=MIN_YEAR, le=MAX_YEAR)
    genre: str | None = Field(default=None, max_length=50)
    price: float = Field(ge=0, le=1000)

    @field_validator("title", "author")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("price")
    @classmethod
    def whole_cents(cls, value: float) -> float:
        if round(value, 2) != value:
            raise ValueError("must have at most 2 decimal places")
        return value


class Book(BookFields):
    id: int


class CreateBook(BookFields):
    pass


class UpdateBook(BookFields):
    # clients echo the id they are editing; it must match the path
    id: int | None = None


class HealthCheck(BaseModel):
    name: str
    status: str
    description: str


class HealthReport(BaseModel):
    status: str
    checks: list[HealthCheck]
