"""Configuration management for deskqr."""

import os
import tempfile
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables
load_dotenv()

DECODER_BACKENDS = ("opencv", "pyzbar")


class Config(BaseSettings):
    """Configuration class for deskqr."""

    model_config = SettingsConfigDict(
        env_prefix="DESKQR_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore unexpected env vars rather than raising errors
    )

    # Geometry
    quiet_zone_factor: float = Field(
        default=0.20,
        description="Fraction of each finder-to-finder edge added around the symbol",
    )
    crop_padding: int = Field(default=32, description="Extra pixels kept around cropped symbols")

    # Decoder
    decoder_backend: str = Field(default="opencv", description="One of: opencv, pyzbar")
    try_inverted: bool = Field(default=True, description="Retry decoding on the inverted image")

    # Logging
    log_level: str = Field(default="INFO")
    log_to_file: bool = Field(default=False)
    log_dir: str = Field(default="logs")

    # Output
    snippet_dir: Optional[str] = Field(default=None, description="Where cropped symbols are written")
    save_vision_debug: bool = Field(default=False)
    vision_debug_dir: str = Field(default="vision_debug")

    def validate_config(self) -> bool:
        """Validate configuration values."""
        if self.quiet_zone_factor < 0:
            raise ValueError("Quiet zone factor must not be negative")

        if self.crop_padding < 0:
            raise ValueError("Crop padding must not be negative")

        if self.decoder_backend.lower() not in DECODER_BACKENDS:
            raise ValueError(
                f"Unknown decoder backend {self.decoder_backend!r}, expected one of {DECODER_BACKENDS}"
            )

        return True

    def get_snippet_path(self) -> str:
        """Get the full path to the snippet directory."""
        if self.snippet_dir:
            return os.path.abspath(self.snippet_dir)
        return tempfile.gettempdir()


# Global configuration instance
try:
    config = Config()
except Exception as e:
    print(f"Warning: Could not load configuration: {e}")
    # Fall back to defaults so the package stays importable
    config = Config.model_construct()
