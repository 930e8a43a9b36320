from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

import yaml
from dotenv import dotenv_values


@dataclass
class LanguagePrefs:
    native_language: str
    target_language: str


@dataclass
class OpenAIPrefs:
    temperature: float


@dataclass
class ExportPrefs:
    anki_deck: bool
    bookmarks_only_markdown: bool


@dataclass
class Settings:
    output_dir: Path
    results_file: Path
    log_level: str
    language: LanguagePrefs
    openai: OpenAIPrefs
    export: ExportPrefs

    openai_api_key: str
    openai_model: str
    openai_base_url: str


DEFAULTS = {
    "output_dir": "output",
    "results_file": "output/last_results.json",
    "log_level": "INFO",
    "language": {"native_language": "Chinese", "target_language": "English"},
    "openai": {"temperature": 0.2},
    "export": {"anki_deck": True, "bookmarks_only_markdown": False},
}


def load_settings(config_path: str = "config.yaml") -> Settings:
    project_root = Path(__file__).resolve().parent.parent
    env_path = project_root / ".env"
    config_file = Path(config_path)
    if not config_file.exists():
        config_file = project_root / config_path
    raw_env = dotenv_values(env_path) if env_path.exists() else {}
    env = {str(k).lstrip("\ufeff"): (v or "") for k, v in raw_env.items()}

    def get_env(name: str, default: str = "") -> str:
        # Process environment overrides .env file.
        v = os.getenv(name)
        if v is not None and v != "":
            return v.strip()

        value = str(env.get(name, default))

        # Remove BOM and invisible whitespace/newlines
        value = value.replace("\ufeff", "").strip()

        return value

    cfg: dict = {}
    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    def section(name: str) -> dict:
        return {**DEFAULTS[name], **(cfg.get(name) or {})}

    return Settings(
        output_dir=Path(cfg.get("output_dir", DEFAULTS["output_dir"])),
        results_file=Path(cfg.get("results_file", DEFAULTS["results_file"])),
        log_level=str(cfg.get("log_level", DEFAULTS["log_level"])).upper(),
        language=LanguagePrefs(**section("language")),
        openai=OpenAIPrefs(**section("openai")),
        export=ExportPrefs(**section("export")),
        openai_api_key=get_env("OPENAI_API_KEY", ""),
        openai_model=get_env("OPENAI_MODEL", "gpt-4.1-mini"),
        openai_base_url=get_env("OPENAI_BASE_URL", ""),
    )
