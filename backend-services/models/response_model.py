from pydantic import BaseModel, Field


class ResponseModel(BaseModel):
    status_code: int | None = Field(None)

    response_headers: dict | None = Field(None)

    status: str | None = Field(None)
    message: str | None = Field(None, min_length=1)
    error: str | None = Field(None)

    response: dict | None = Field(None)
    data: dict | list | None = Field(None)
