import json
import logging
from pathlib import Path
from typing import Any

from ..data.config import ValidatorConfig
from ..data.profile import Profile
from ..errors import NotInitialized
from ..evaluation.finding_aggregator import FindingAggregator
from ..model.finding import ValidationResult
from ..pipeline import ValidationPipeline
from ..registry import ProfileRegistry
from ..validator.instance import as_resource

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "reference_checker"


class ValidationHandler:
    def __init__(self, config: ValidatorConfig | None = None) -> None:
        self.config = config or ValidatorConfig()
        self.__registry: ProfileRegistry | None = None
        self.__pipeline: ValidationPipeline | None = None

    @staticmethod
    def from_config_file(file: str | Path) -> "ValidationHandler":
        handler = ValidationHandler(ValidatorConfig.from_json(file))
        handler.load()
        return handler

    @property
    def registry(self) -> ProfileRegistry:
        if self.__registry is None:
            raise NotInitialized("ValidationHandler was not loaded")
        return self.__registry

    @property
    def pipeline(self) -> ValidationPipeline:
        if self.__pipeline is None:
            raise NotInitialized("ValidationHandler was not loaded")
        return self.__pipeline

    def load(self) -> None:
        if self.config.log_level:
            logging.getLogger(PACKAGE_LOGGER).setLevel(self.config.log_level.upper())

        registry = (
            ProfileRegistry.with_core_definitions()
            if self.config.include_core_definitions
            else ProfileRegistry()
        )
        for path in self.config.profile_paths():
            registry.register(Profile.from_json(path))

        self.__registry = registry
        self.__pipeline = ValidationPipeline(
            registry,
            facets=self.config.facets,
            error_for_unknown_profiles=self.config.error_for_unknown_profiles,
            validate_contained=self.config.validate_contained_resources,
            validate_bundle_entries=self.config.validate_bundle_entries,
        )
        logger.info("loaded %d profiles", len(registry.profile_urls))

    def validate(self, instance: Any) -> ValidationResult:
        resource = as_resource(instance)
        findings = self.pipeline.run(resource)
        selection = self.registry.select(resource)

        return ValidationResult(
            resource_type=selection.resource_type,
            profiles=selection.profiles,
            findings=findings,
            summary=FindingAggregator.build_summary(findings),
        )

    def validate_file(self, file: str | Path) -> ValidationResult:
        file = Path(file)
        logger.info("validating '%s'", str(file))
        return self.validate(json.loads(file.read_text(encoding="utf-8")))
