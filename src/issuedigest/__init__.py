"""issuedigest - keep one GitHub tracking issue in sync with the issues it summarises.

Two digests are supported: a milestone planning digest and a community
onboarding digest. Both are rendered deterministically from the tracker's
current state and written through a preview / confirm / dry-run workflow.

Library use:

from issuedigest import GitHubRestClient, PlanOptions, Reconciler
from issuedigest.ux import ConsoleReporter
from issuedigest.prompt import ask_for_confirmation

client = GitHubRestClient(token=token, repo='acme/widgets')
reconciler = Reconciler(client, reporter=ConsoleReporter(), confirm=ask_for_confirmation)
result = reconciler.reconcile_milestone('acme/widgets', 3, PlanOptions(dry_run=True))
print(result.body)
"""

from __future__ import annotations

# Defined before any submodule import; github_rest reads it for the User-Agent.
__version__ = "0.1.0"

from .config import DigestConfig, load_config  # noqa: E402
from .github_rest import GitHubRestClient  # noqa: E402
from .reconcile import OnboardOptions, PlanOptions, Reconciler, ReconcileResult  # noqa: E402

__all__ = [
    "DigestConfig",
    "load_config",
    "GitHubRestClient",
    "OnboardOptions",
    "PlanOptions",
    "Reconciler",
    "ReconcileResult",
    "__version__",
]
