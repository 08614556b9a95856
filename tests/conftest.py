from pathlib import Path

import pytest
import structlog

from swagger_mcp.compiler.tools import CompiledTool

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _reset_structlog():
    """CLI tests configure structlog against CliRunner's streams; undo that."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def petstore_path() -> Path:
    return FIXTURES / "petstore.json"


@pytest.fixture
def openapi_path() -> Path:
    return FIXTURES / "petstore_openapi.yaml"


def make_tool(**overrides) -> CompiledTool:
    fields = {
        "name": "post_api/id",
        "method": "POST",
        "url": "http://api.test/api/{id}",
        "description": "test tool",
    }
    fields.update(overrides)
    return CompiledTool(**fields)
