"""Local file-system repositories of job and resource specs.

Specs live one per directory:

    jobs/
      orders/job.yaml
      customers/daily/job.yaml
    datastore/bigquery/
      orders_table/resource.yaml

Repositories scan their root recursively, validate each file and adapt it
to the domain model. Specs are loaded once, on first access.
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from sluice_core.adapter import JobSpecAdapter, ResourceSpecAdapter
from sluice_core.errors import ConfigurationError, SpecNotFoundError, ValidationError
from sluice_core.models import JobSpec, ResourceSpec
from sluice_core.schemas import JobSpecFile, ResourceSpecFile
from sluice_core.validators import CONTEXT_KEY, ValidatorRegistry

logger = structlog.get_logger(__name__)

JOB_SPEC_FILE_NAME = "job.yaml"
RESOURCE_SPEC_FILE_NAME = "resource.yaml"


def _field_path(exc: PydanticValidationError) -> str | None:
    errors = exc.errors()
    if not errors:
        return None
    return ".".join(str(part) for part in errors[0]["loc"]) or None


def _load_error(path: Path, exc: Exception) -> ConfigurationError:
    """Wrap a YAML or schema failure with the offending file."""
    if isinstance(exc, yaml.YAMLError):
        line_number = None
        mark = getattr(exc, "problem_mark", None)
        if mark is not None:
            line_number = mark.line + 1
        return ConfigurationError(
            "Invalid YAML syntax",
            file_path=str(path),
            line_number=line_number,
            internal_details=str(exc),
        )
    if isinstance(exc, PydanticValidationError):
        first = exc.errors()[0]["msg"] if exc.errors() else str(exc)
        return ConfigurationError(
            f"Spec validation failed: {first}",
            file_path=str(path),
            field_path=_field_path(exc),
            internal_details=str(exc),
        )
    return ConfigurationError(f"Cannot read spec: {exc}", file_path=str(path))


def _find(root: Path, file_name: str) -> list[Path]:
    if not root.exists():
        logger.warning("spec_root_missing", root=str(root))
        return []
    return sorted(root.rglob(file_name))


class JobSpecRepository:
    """Job specs stored as ``job.yaml`` files under a root directory.

    Args:
        root: Directory scanned recursively.
        adapter: Adapter turning files into domain specs.
        validators: Optional validator registry used while validating files.

    Example:
        >>> repo = JobSpecRepository(Path("jobs"), adapter)
        >>> [spec.name for spec in repo.get_all()]
        ['customers', 'orders']
    """

    def __init__(
        self,
        root: Path,
        adapter: JobSpecAdapter,
        *,
        validators: ValidatorRegistry | None = None,
    ) -> None:
        self.root = Path(root)
        self.adapter = adapter
        self.validators = validators
        self._specs: dict[str, JobSpec] | None = None

    def _context(self) -> dict[str, ValidatorRegistry] | None:
        return {CONTEXT_KEY: self.validators} if self.validators is not None else None

    def _load(self) -> dict[str, JobSpec]:
        if self._specs is not None:
            return self._specs

        specs: dict[str, JobSpec] = {}
        locations: dict[str, Path] = {}
        for path in _find(self.root, JOB_SPEC_FILE_NAME):
            try:
                spec_file = JobSpecFile.from_yaml(path, context=self._context())
            except (yaml.YAMLError, PydanticValidationError, OSError) as e:
                raise _load_error(path, e) from e

            spec = self.adapter.to_spec(spec_file)
            if spec.name in specs:
                raise ValidationError(
                    f"Duplicate job name '{spec.name}' in {locations[spec.name]} and {path}"
                )
            specs[spec.name] = spec
            locations[spec.name] = path

        logger.debug("job_specs_loaded", root=str(self.root), count=len(specs))
        self._specs = specs
        return specs

    def get_all(self) -> list[JobSpec]:
        """Return all job specs sorted by name."""
        specs = self._load()
        return [specs[name] for name in sorted(specs)]

    def get_by_name(self, name: str) -> JobSpec:
        """Return the job spec named ``name``.

        Raises:
            SpecNotFoundError: If no spec has that name.
        """
        specs = self._load()
        if name not in specs:
            raise SpecNotFoundError("job", name)
        return specs[name]

    def save_at(self, spec: JobSpec, directory: Path) -> Path:
        """Write ``spec`` as ``job.yaml`` inside ``directory`` (relative to root).

        Returns:
            Path of the written file.
        """
        spec_file = self.adapter.from_spec(spec)
        target_dir = self.root / directory
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / JOB_SPEC_FILE_NAME
        target.write_text(spec_file.to_yaml())

        if self._specs is not None:
            self._specs[spec.name] = spec
        logger.info("job_spec_saved", name=spec.name, path=str(target))
        return target


class ResourceSpecRepository:
    """Resource specs of one datastore, stored as ``resource.yaml`` files.

    Args:
        root: Directory scanned recursively.
        datastore_name: Datastore the resources belong to.
        adapter: Adapter binding files to the datastore.
    """

    def __init__(self, root: Path, datastore_name: str, adapter: ResourceSpecAdapter) -> None:
        self.root = Path(root)
        self.datastore_name = datastore_name
        self.adapter = adapter
        self._specs: dict[str, ResourceSpec] | None = None

    def _load(self) -> dict[str, ResourceSpec]:
        if self._specs is not None:
            return self._specs

        specs: dict[str, ResourceSpec] = {}
        for path in _find(self.root, RESOURCE_SPEC_FILE_NAME):
            try:
                spec_file = ResourceSpecFile.from_yaml(path)
            except (yaml.YAMLError, PydanticValidationError, OSError) as e:
                raise _load_error(path, e) from e

            spec = self.adapter.to_spec(spec_file, self.datastore_name)
            if spec.name in specs:
                raise ValidationError(
                    f"Duplicate resource name '{spec.name}' in datastore "
                    f"'{self.datastore_name}' ({path})"
                )
            specs[spec.name] = spec

        logger.debug(
            "resource_specs_loaded",
            root=str(self.root),
            datastore=self.datastore_name,
            count=len(specs),
        )
        self._specs = specs
        return specs

    def get_all(self) -> list[ResourceSpec]:
        """Return all resource specs sorted by name."""
        specs = self._load()
        return [specs[name] for name in sorted(specs)]

    def get_by_name(self, name: str) -> ResourceSpec:
        """Return the resource spec named ``name``.

        Raises:
            SpecNotFoundError: If no spec has that name.
        """
        specs = self._load()
        if name not in specs:
            raise SpecNotFoundError("resource", name)
        return specs[name]

    def save_at(self, spec: ResourceSpec, directory: Path) -> Path:
        """Write ``spec`` as ``resource.yaml`` inside ``directory`` (relative to root)."""
        target_dir = self.root / directory
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / RESOURCE_SPEC_FILE_NAME
        target.write_text(self.adapter.from_spec(spec).to_yaml())

        if self._specs is not None:
            self._specs[spec.name] = spec
        logger.info(
            "resource_spec_saved",
            name=spec.name,
            datastore=self.datastore_name,
            path=str(target),
        )
        return target
