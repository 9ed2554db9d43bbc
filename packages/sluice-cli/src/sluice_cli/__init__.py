"""sluice-cli: command-line interface for the sluice orchestrator client.

Commands:
- sluice deploy: Deploy a project's resources and jobs
- sluice validate: Validate sluice.yaml and every job and resource spec
"""

from __future__ import annotations

__version__ = "0.1.0"
