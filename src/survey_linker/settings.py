from __future__ import annotations

from pydantic import Field

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except Exception as e:  # pragma: no cover
    raise RuntimeError(
        "pydantic-settings is required. Install with: pip install pydantic-settings"
    ) from e


class LinkerSettings(BaseSettings):
    """Unified configuration for the survey linker.

    Environment variables are prefixed with SURVEY_LINKER_.
    """

    model_config = SettingsConfigDict(env_prefix="SURVEY_LINKER_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- Input ---
    file_delimiter: str = Field(default="\t", description="Cell separator of the data sheet")

    # --- Entity resolution ---
    conjoiner: str = Field(
        default="+++",
        min_length=1,
        description="Token joining identifying values into a composite key",
    )
    ampersand_substitute: str = Field(default="+", description="Replacement for '&' in ids and values")

    # --- DynetML output ---
    network_id: str | None = Field(default=None, description="Defaults to the data file stem")
    escape_markup: bool = Field(default=False, description="Also escape <, > and quotes in attributes")
    output_encoding: str = Field(default="utf-8")


settings = LinkerSettings()
