"""Weather observations and forecasts."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Weather(BaseModel):
    """One weather condition, as reported for a point in time.

    The observation timestamp is optional: some payloads carry no `dt`.
    """

    model_config = ConfigDict(frozen=True)

    date: datetime | None = None
    main: str
    description: str
    icon: str

    def icon_url(self, base_url: str) -> str:
        """URL of the condition icon under `base_url`."""
        return f"{base_url.rstrip('/')}/{self.icon}.png"
