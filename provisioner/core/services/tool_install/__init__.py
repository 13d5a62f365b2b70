"""
Tool installation service — package re-exports.

    from provisioner.core.services.tool_install import ProvisionOrchestrator

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → resolver → detection → execution →
orchestration).
"""

# ── L0: Data ──
from provisioner.core.services.tool_install.data.tool_specs import (  # noqa: F401
    TOOL_SPECS,
    get_tool_spec,
)

# ── L2: Resolver ──
from provisioner.core.services.tool_install.resolver.strategy_resolution import (  # noqa: F401
    check_precondition,
    resolve,
)

# ── L3: Detection ──
from provisioner.core.services.tool_install.detection.command import (  # noqa: F401
    command_exists,
    resolve_command,
)
from provisioner.core.services.tool_install.detection.environment import detect  # noqa: F401

# ── L4: Execution ──
from provisioner.core.services.tool_install.execution.installer import execute  # noqa: F401
from provisioner.core.services.tool_install.execution.path_persistence import (  # noqa: F401
    PersistOutcome,
    persist,
)
from provisioner.core.services.tool_install.execution.retry_controller import (  # noqa: F401
    run_with_retry,
)
from provisioner.core.services.tool_install.execution.search_path import SearchPath  # noqa: F401

# ── L5: Orchestration ──
from provisioner.core.services.tool_install.orchestration.orchestrator import (  # noqa: F401
    ProvisionOrchestrator,
)
