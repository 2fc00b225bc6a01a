"""
Configuration management using Pydantic Settings.

Environment variables (all prefixed with CROPPER_):
- CROPPER_DEFAULT_UNIT: Unit used when the input unit is unknown ("in" or "cm")
- CROPPER_MIN_AREA_FT2: Minimum billable wall area in square feet
- CROPPER_ENABLE_PANELS: Whether panel split lines can be shown at all
- CROPPER_PANEL_TARGET / CROPPER_PANEL_MAX: Panel widths in inches
- CROPPER_VARIANT_PRICES: Rates as "key:cents,key:cents"
- CROPPER_UPLOAD_ENDPOINT: URL receiving exported crops
"""
from typing import Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import (
    DEFAULT_DIMENSIONS,
    DEFAULT_JPEG_QUALITY,
    INITIAL_FILL_FRACTION,
    MAX_HEIGHT_FRACTION,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CROPPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Units & pricing
    default_unit: str = Field(default="in")
    min_area_ft2: float = Field(default=30.0, ge=0)
    variant_prices: str = Field(default="")
    default_selection_key: Optional[str] = Field(default=None)

    # Panel layout (inches)
    enable_panels: bool = Field(default=False)
    panel_target: float = Field(default=24.0, gt=0)
    panel_max: float = Field(default=25.0, gt=0)

    # Crop geometry
    initial_fill: float = Field(default=INITIAL_FILL_FRACTION, gt=0, le=1)
    max_height_fraction: float = Field(default=MAX_HEIGHT_FRACTION, gt=0, le=1)

    # Export
    jpeg_quality: int = Field(default=DEFAULT_JPEG_QUALITY, ge=1, le=100)
    upload_endpoint: str = Field(default="")
    upload_timeout: float = Field(default=30.0, gt=0)
    image_timeout: float = Field(default=30.0, gt=0)

    # Logging
    log_level: str = Field(default="INFO")

    def get_rate_table(self):
        """Get the configured variant rates as a RateTable."""
        from cropping.pricing import RateTable

        return RateTable.parse(self.variant_prices)

    def get_default_dimensions(self) -> Tuple[float, float]:
        """Get the default wall (width, height) for the default unit."""
        return DEFAULT_DIMENSIONS.get(self.default_unit, DEFAULT_DIMENSIONS["in"])


# Global settings instance
settings = Settings()
