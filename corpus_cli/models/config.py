"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Corpora that `copy` knows about, mapped to the config field holding their
# source directory.
CORPUS_SOURCES = {
    "apps": "apps_dir",
    "dart": "dart_sdk_dir",
    "flutter": "flutter_dir",
    "pub": "pub_dir",
    "widgets": "widgets_dir",
}


class CorpusConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Output locations
    download_root: str = "download"
    out_root: str = "out"

    # Checkouts assumed to live next to this repo
    dart_sdk_dir: str = "../../../dart/sdk"
    flutter_dir: str = "../../../flutter"

    # Download settings
    concurrency: int = 20
    widgets_concurrency: int = 10
    apps_concurrency: int = 5
    pub_limit: int = 2000
    http_attempts: int = 3

    # Copy settings
    sample_percent: int = 100

    # Internal field not loaded from the INI file
    config_path: str = Field("", repr=False)

    @field_validator("concurrency", "widgets_concurrency", "apps_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Ensures a reasonable number of concurrent downloads."""
        if v < 1 or v > 64:
            raise ValueError("Concurrency must be between 1 and 64.")
        return v

    @field_validator("pub_limit")
    @classmethod
    def validate_pub_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Package limit must be at least 1.")
        return v

    @field_validator("http_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("HTTP attempts must be between 1 and 10.")
        return v

    @field_validator("sample_percent")
    @classmethod
    def validate_sample(cls, v: int) -> int:
        if v < 0 or v > 100:
            raise ValueError("Sample percent must be between 0 and 100.")
        return v

    @field_validator("download_root", "out_root")
    @classmethod
    def validate_root(cls, v: str) -> str:
        if not v:
            raise ValueError("Output directories cannot be empty.")
        return v

    @property
    def apps_dir(self) -> str:
        return f"{self.download_root}/apps"

    @property
    def pub_dir(self) -> str:
        return f"{self.download_root}/pub"

    @property
    def widgets_dir(self) -> str:
        return f"{self.download_root}/widgets"

    def corpus_source(self, name: str) -> str:
        """Returns the source directory for the corpus called `name`."""
        if name not in CORPUS_SOURCES:
            raise KeyError(name)
        return getattr(self, CORPUS_SOURCES[name])

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return {key for key in cls.model_fields if key != "config_path"}
