import patch_hub.core as core
import patch_hub.models as models
import patch_hub.orchestrator as orchestrator
import patch_hub.packages as packages
from patch_hub.core.exceptions import (
    ConfigurationError,
    IntegrityError,
    PatchHubError,
    SourceArtifactMissingError,
    UnknownConfigurationError,
    UnsupportedPlatformError,
)
from patch_hub.models import FAILED_OUTCOMES, PatchOutcome
from patch_hub.orchestrator import BatchSetupError, GraphBuildError, OrchestratorError


def test_public_exports_resolve():
    for module in (core, models, orchestrator, packages):
        for name in module.__all__:
            assert hasattr(module, name), f"{module.__name__}.{name}"


def test_exception_hierarchy():
    assert issubclass(UnknownConfigurationError, ConfigurationError)
    assert issubclass(SourceArtifactMissingError, IntegrityError)
    assert issubclass(UnsupportedPlatformError, PatchHubError)
    assert issubclass(BatchSetupError, OrchestratorError)
    assert issubclass(GraphBuildError, OrchestratorError)


def test_failed_outcomes():
    assert PatchOutcome.SUCCESS not in FAILED_OUTCOMES
    assert PatchOutcome.NONE not in FAILED_OUTCOMES
    assert PatchOutcome.INVALID_CONFIGURATION in FAILED_OUTCOMES
