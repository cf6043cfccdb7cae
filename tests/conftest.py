import pytest

from seoflow.config import EngineConfig
from seoflow.contracts import WorkflowContext
from seoflow.persistence import InMemoryExecutionRepository

from tests.fixtures.workflows import make_step, make_workflow


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Keep tests independent of a developer's config file and database."""
    monkeypatch.setenv("SEOFLOW_CONFIG", str(tmp_path / "missing-config.yaml"))
    monkeypatch.delenv("SEOFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)


@pytest.fixture
def repository():
    return InMemoryExecutionRepository()


@pytest.fixture
def engine_config():
    return EngineConfig(save_retries=0)


@pytest.fixture
def context():
    return WorkflowContext(user_query="test query")


@pytest.fixture
def linear_workflow():
    return make_workflow(
        make_step("step1", tool="tool_a"),
        make_step("step2", "step1", tool="tool_b"),
        make_step("step3", "step2", tool="tool_c"),
    )
