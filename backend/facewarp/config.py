from __future__ import annotations

from functools import lru_cache
import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
BACKEND_DIR = PACKAGE_DIR.parent
REPO_ROOT = BACKEND_DIR.parent
ROOT_ENV_FILE = REPO_ROOT / ".env"
BACKEND_ENV_FILE = BACKEND_DIR / ".env"


def _clean_env_path_value(raw: str) -> str:
    value = raw.strip()
    if value.lower().startswith('r"') and value.endswith('"'):
        return value[2:-1]
    if value.lower().startswith("r'") and value.endswith("'"):
        return value[2:-1]
    if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
        return value[1:-1]
    return value


def _resolve_path(raw: Path) -> Path:
    candidate = Path(_clean_env_path_value(str(raw)))
    if candidate.is_absolute():
        return candidate

    cwd_candidate = (Path.cwd() / candidate).resolve()
    if cwd_candidate.exists():
        return cwd_candidate

    root_candidate = (REPO_ROOT / candidate).resolve()
    if root_candidate.exists():
        return root_candidate

    return cwd_candidate


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FACEWARP_",
        env_file=(str(ROOT_ENV_FILE), str(BACKEND_ENV_FILE)),
        extra="ignore",
    )

    app_name: str = "facewarp"
    log_level: str = "INFO"

    # Canonical projection frame. Alignment parameters are defined relative to
    # these values; changing them invalidates every stored alignment.
    canonical_radius: float = 150.0
    canonical_offset: float = 50.0

    mean_shape_path: Path = Path("backend/models/mean_shape.npz")
    mean_image_path: Path = Path("backend/models/mean_image.npz")
    dataset_manifest: Path = Path("dataset/manifest.json")
    output_dir: Path = Path("output/aligned")

    warp_enabled: bool = True
    draw_triangles: bool = False
    log_triangles: bool = False
    batch_workers: int = Field(default=1, ge=1)

    @property
    def mean_shape_path_resolved(self) -> Path:
        return _resolve_path(self.mean_shape_path)

    @property
    def mean_image_path_resolved(self) -> Path:
        return _resolve_path(self.mean_image_path)

    @property
    def dataset_manifest_resolved(self) -> Path:
        return _resolve_path(self.dataset_manifest)

    @property
    def output_dir_resolved(self) -> Path:
        return _resolve_path(self.output_dir)

    @property
    def active_env_file(self) -> str:
        if ROOT_ENV_FILE.exists() and BACKEND_ENV_FILE.exists():
            return f"{ROOT_ENV_FILE} (base), {BACKEND_ENV_FILE} (override)"
        if ROOT_ENV_FILE.exists():
            return str(ROOT_ENV_FILE)
        if BACKEND_ENV_FILE.exists():
            return str(BACKEND_ENV_FILE)
        return "none"

    @property
    def active_batch_workers(self) -> int:
        return max(int(self.batch_workers), 1)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    logger.info(
        "Active settings | mean_shape=%s | manifest=%s | cwd=%s | env_file=%s",
        settings.mean_shape_path_resolved,
        settings.dataset_manifest_resolved,
        Path.cwd(),
        settings.active_env_file,
    )
    return settings
