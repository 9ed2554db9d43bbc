"""On-disk specification models for sluice.

Job Specs:
- JobSpecFile: Root schema for job.yaml
- JobSchedule, JobBehavior, JobTask, JobTaskWindow: Job sections
- JobHook, JobDependency: Attached hooks and upstream jobs
- ConfigItem: Ordered name/value configuration pair

Resource Specs:
- ResourceSpecFile: Root schema for resource.yaml
"""

from __future__ import annotations

from sluice_core.schemas.job_spec import (
    JOB_CONFIG_VERSION,
    TRUNCATE_TO_PATTERN,
    ConfigItem,
    JobBehavior,
    JobDependency,
    JobHook,
    JobSchedule,
    JobSpecFile,
    JobTask,
    JobTaskWindow,
)
from sluice_core.schemas.resource_spec import RESOURCE_NAME_PATTERN, ResourceSpecFile

__all__ = [
    "JOB_CONFIG_VERSION",
    "TRUNCATE_TO_PATTERN",
    "RESOURCE_NAME_PATTERN",
    "ConfigItem",
    "JobBehavior",
    "JobDependency",
    "JobHook",
    "JobSchedule",
    "JobSpecFile",
    "JobTask",
    "JobTaskWindow",
    "ResourceSpecFile",
]
