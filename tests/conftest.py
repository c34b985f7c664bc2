import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from halls import create_app  # noqa: E402
from halls.maze import RegionConfig, WorldConfig  # noqa: E402
from halls.routes.world_api import clear_worlds  # noqa: E402


@pytest.fixture(scope="session")
def test_app(tmp_path_factory):
    app = create_app({"TESTING": True, "HALLS_MAX_WORLDS": 4})
    app.instance_path = str(tmp_path_factory.mktemp("instance"))
    return app


@pytest.fixture(autouse=True)
def _push_app_context(test_app):
    ctx = test_app.app_context()
    ctx.push()
    try:
        yield
    finally:
        ctx.pop()


@pytest.fixture()
def client(test_app):
    clear_worlds()
    return test_app.test_client()


@pytest.fixture()
def region_config():
    return RegionConfig()


@pytest.fixture()
def roomy_config():
    """World config with a generous live-region cap so nothing gets pruned."""
    return WorldConfig(max_total_regions=20)
