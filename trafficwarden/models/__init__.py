# Models package: re-export the public models.
# Prefer importing from the specific submodule (e.g. trafficwarden.models.requests).

from trafficwarden.models.browser import (
    DeviceContext as DeviceContext,
    DeviceProfile as DeviceProfile,
    LoadWaitPolicy as LoadWaitPolicy,
    ViewportSize as ViewportSize,
)
from trafficwarden.models.requests import (
    AbortDecision as AbortDecision,
    ContinueDecision as ContinueDecision,
    Decision as Decision,
    DecisionKind as DecisionKind,
    PendingRequest as PendingRequest,
    RespondDecision as RespondDecision,
    ResourceCategory as ResourceCategory,
)
from trafficwarden.models.summary import (
    LedgerSnapshot as LedgerSnapshot,
    SessionSummary as SessionSummary,
)
