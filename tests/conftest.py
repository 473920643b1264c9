import pytest

from application.use_cases.auto_schedule import AutoScheduleUseCase
from application.use_cases.quick_add import QuickAddUseCase
from backend.services.template_locks import TemplateLockRegistry
from tests.fakes import InMemoryClassInstanceRepository, InMemoryClassTemplateRepository


@pytest.fixture
def template_repo():
    return InMemoryClassTemplateRepository()


@pytest.fixture
def instance_repo():
    return InMemoryClassInstanceRepository()


@pytest.fixture
def locks():
    return TemplateLockRegistry()


@pytest.fixture
def auto_schedule(template_repo, instance_repo, locks):
    """Engine over in-memory stores with a four week horizon."""
    return AutoScheduleUseCase(
        template_repository=template_repo,
        instance_repository=instance_repo,
        locks=locks,
        horizon_weeks=4,
    )


@pytest.fixture
def quick_add(instance_repo, locks):
    """Quick-add sharing the engine's lock registry."""
    return QuickAddUseCase(instance_repository=instance_repo, locks=locks)
