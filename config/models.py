"""Pydantic configuration models for the browser test harness."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from config.reader import ConfigReader
from exceptions import ConfigFileNotFoundError


# Load .env file if present
load_dotenv()


class WaitConfig(BaseModel):
    """Explicit-wait timeouts, in seconds."""

    timeout: float = Field(default=10, gt=0, description="Default wait timeout")
    short_timeout: float = Field(default=5, gt=0, description="Short wait timeout")
    long_timeout: float = Field(default=20, gt=0, description="Long wait timeout")
    page_load_timeout: float = Field(default=30, gt=0, description="Page load wait timeout")
    poll_interval: float = Field(default=0.5, gt=0, description="Seconds between polls")


class BrowserConfig(BaseModel):
    """Browser automation configuration."""

    browser: Literal["chrome", "chromium", "firefox", "edge", "webkit"] = Field(
        default="chrome",
        description="Browser to launch",
    )
    headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
    )
    channel: Optional[str] = Field(
        default=None,
        description="Playwright browser channel (e.g. chrome, msedge)",
    )
    viewport_width: int = Field(
        default=1920,
        ge=800,
        le=3840,
        description="Browser viewport width",
    )
    viewport_height: int = Field(
        default=1080,
        ge=600,
        le=2160,
        description="Browser viewport height",
    )
    slow_mo: int = Field(
        default=0,
        ge=0,
        le=5000,
        description="Slow down browser operations by this many ms",
    )
    downloads_folder: Optional[Path] = Field(
        default=None,
        description="Directory for downloaded files",
    )

    @model_validator(mode="before")
    @classmethod
    def load_from_env(cls, data: Any) -> Any:
        """Load browser selection from environment variables if not explicitly set."""
        if not isinstance(data, dict):
            return data
        env_mapping = {
            "browser": "HARNESS_BROWSER",
            "headless": "HARNESS_HEADLESS",
        }
        for field_name, env_var in env_mapping.items():
            if data.get(field_name) is None:
                env_value = os.getenv(env_var)
                if env_value:
                    data[field_name] = env_value.lower()
        return data


class ReportingConfig(BaseModel):
    """Reporting and output configuration."""

    screenshot_on_failure: bool = Field(
        default=True,
        description="Capture a screenshot when an attempt fails",
    )
    screenshots_folder: Path = Field(
        default=Path("./screenshots"),
        description="Directory for saving screenshots",
    )
    reports_folder: Path = Field(
        default=Path("./reports"),
        description="Directory for saving reports",
    )
    output_format: Literal["html", "json", "junit", "all"] = Field(
        default="html",
        description="Report output format",
    )
    embed_screenshots: bool = Field(
        default=False,
        description="Embed screenshots as base64 in HTML reports",
    )
    report_name: str = Field(default="Web Automation Report")
    document_title: str = Field(default="Test Execution Results")

    @field_validator("screenshots_folder", "reports_folder", mode="before")
    @classmethod
    def convert_to_path(cls, v: Any) -> Path:
        """Convert string to Path."""
        if isinstance(v, str):
            return Path(v)
        return v


class RetryConfig(BaseModel):
    """Retry-on-failure policy."""

    max_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Total runs allowed per test (2 = retry once)",
    )
    delay_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Pause between attempts",
    )


class HarnessConfig(BaseModel):
    """Root configuration model combining all config sections."""

    wait: WaitConfig = Field(default_factory=WaitConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    base_url: Optional[str] = Field(default=None, description="Base URL of the web app under test")
    api_base_url: Optional[str] = Field(default=None, description="Base URL of the API under test")

    parallel_workers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Number of parallel test workers",
    )
    verbose: bool = Field(
        default=False,
        description="Enable verbose logging",
    )

    @field_validator("base_url", "api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v

    @model_validator(mode="before")
    @classmethod
    def load_from_env(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("base_url") is None:
            env_value = os.getenv("HARNESS_BASE_URL")
            if env_value:
                data["base_url"] = env_value
        return data

    @classmethod
    def from_reader(cls, reader: ConfigReader) -> "HarnessConfig":
        """Create config from dotted keys (``wait.timeout``, ``base.url``, ...)."""
        wait = WaitConfig()
        nested: dict[str, Any] = {
            "wait": {
                "timeout": reader.get_float("wait.timeout", wait.timeout),
                "short_timeout": reader.get_float("wait.short.timeout", wait.short_timeout),
                "long_timeout": reader.get_float("wait.long.timeout", wait.long_timeout),
                "page_load_timeout": reader.get_float("wait.page.load.timeout", wait.page_load_timeout),
                "poll_interval": reader.get_float("wait.poll.interval", wait.poll_interval),
            },
            "browser": {},
            "reporting": {},
            "retry": {
                "max_attempts": reader.get_int("retry.max.attempts", RetryConfig().max_attempts),
            },
            "parallel_workers": reader.get_int("parallel.workers", 1),
        }
        if reader.get("browser"):
            nested["browser"]["browser"] = reader.get("browser").lower()
        if reader.get("headless") is not None:
            nested["browser"]["headless"] = reader.get_bool("headless", True)
        if reader.get("downloads.folder"):
            nested["browser"]["downloads_folder"] = reader.get("downloads.folder")
        if reader.get("reports.folder"):
            nested["reporting"]["reports_folder"] = reader.get("reports.folder")
        if reader.get("screenshots.folder"):
            nested["reporting"]["screenshots_folder"] = reader.get("screenshots.folder")
        nested["base_url"] = reader.get("base.url")
        nested["api_base_url"] = reader.get("api.base.url")
        return cls.model_validate(nested)


def load_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict[str, Any]] = None,
) -> HarnessConfig:
    """
    Load configuration from file with CLI overrides.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file (JSON, YAML or .properties)
    4. Defaults
    """
    config_data: dict[str, Any] = {}
    explicit = config_path is not None

    if config_path is None:
        config_path = Path("config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        if explicit:
            raise ConfigFileNotFoundError(str(config_path))
        config = HarnessConfig.model_validate(config_data)
    elif config_path.suffix == ".properties":
        config = HarnessConfig.from_reader(ConfigReader.from_file(config_path))
    else:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix in {".yaml", ".yml"}:
                import yaml
                config_data = yaml.safe_load(f) or {}
            else:
                config_data = json.load(f)
        config = HarnessConfig.model_validate(config_data)

    # Apply CLI overrides
    if cli_overrides:
        config_dict = config.model_dump()
        _apply_overrides(config_dict, cli_overrides)
        config = HarnessConfig.model_validate(config_dict)

    return config


def _apply_overrides(config_dict: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Apply CLI overrides to config dictionary."""
    override_mapping = {
        "browser": ("browser", "browser"),
        "headless": ("browser", "headless"),
        "headful": ("browser", "headless"),  # inverted
        "parallel": ("parallel_workers", None),
        "verbose": ("verbose", None),
        "max_attempts": ("retry", "max_attempts"),
        "output_format": ("reporting", "output_format"),
        "reports_dir": ("reporting", "reports_folder"),
        "base_url": ("base_url", None),
    }

    for key, value in overrides.items():
        if value is None:
            continue

        if key == "headful":
            if value:
                config_dict["browser"]["headless"] = False
            continue

        mapping = override_mapping.get(key)
        if mapping:
            section, field = mapping
            if field is None:
                config_dict[section] = value
            else:
                config_dict[section][field] = value
