import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from ..errors import InitializationError
from ..pipeline import DEFAULT_FACETS, Facet

logger = logging.getLogger(__name__)


class ValidatorConfig(BaseModel):
    profile_files: list[str] = []
    include_core_definitions: bool = True
    error_for_unknown_profiles: bool = True
    validate_contained_resources: bool = True
    validate_bundle_entries: bool = True
    facets: list[Facet] = list(DEFAULT_FACETS)
    log_level: str | None = None
    _file_path: Path | None = None

    @staticmethod
    def from_json(file: str | Path) -> "ValidatorConfig":
        file = Path(file)
        if not file.exists():
            raise InitializationError(f"config file {file} does not exist")

        try:
            content = file.read_text(encoding="utf-8")
            config = ValidatorConfig.model_validate_json(content)

        except ValidationError as e:
            msg = f"failed to load config from {str(file)}"
            logger.error(msg)
            logger.error(e.errors())
            raise InitializationError(msg)

        else:
            config._file_path = file
            return config

    @property
    def base_dir(self) -> Path:
        return self._file_path.parent if self._file_path is not None else Path.cwd()

    def profile_paths(self) -> list[Path]:
        """Profile files, relative entries taken from the config's directory."""
        return [
            path if path.is_absolute() else self.base_dir / path
            for path in map(Path, self.profile_files)
        ]
