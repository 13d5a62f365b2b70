"""
Diagnostics service — health checks, repair, and status.

    from provisioner.core.services.diagnostics import diagnose, repair
"""

from provisioner.core.services.diagnostics.doctor import diagnose, probe_tool  # noqa: F401
from provisioner.core.services.diagnostics.repair import repair  # noqa: F401
from provisioner.core.services.diagnostics.status import collect_status  # noqa: F401
