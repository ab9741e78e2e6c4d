"""Request bodies for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field

from fitmacro.domain.nutrition import MealRequest


class MealRequestBody(BaseModel):
    """Meal analysis request: text, a photo URL, or both."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    description: str | None = ""
    photo_url: str | None = Field(default=None, alias="photoUrl")
    language: str | None = "en"

    def to_request(self) -> MealRequest:
        """Convert to the domain request."""
        return MealRequest(
            description=(self.description or "").strip(),
            photo_url=self.photo_url or None,
            language=self.language or "en",
        )


class BarcodeRequestBody(BaseModel):
    """Barcode lookup body for POST requests."""

    model_config = ConfigDict(extra="ignore")

    barcode: str | int | None = None
