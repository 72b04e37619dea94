from pydantic import BaseModel, Field


class ImagePost(BaseModel):
    """
    Schema for uploading an image to the service.
    """

    image: str | None = Field(
        None,
        description="Data URI of the image, e.g. data:image/png;base64,<data>.",
    )


class ImagePostReturn(BaseModel):
    url: str = Field(..., description="Direct download link for the uploaded image.")


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorReturn(BaseModel):
    error: ErrorDetail
