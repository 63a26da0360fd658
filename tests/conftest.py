import os
import sys
from pathlib import Path

# Set test environment variables before any app module reads the config
os.environ.update(
    {
        "DEBUG": "false",
        "OPENVIDU_URL": "http://openvidu.test",
        "OPENVIDU_SECRET": "test-secret",
        "OPENVIDU_STRICT_OPTIONS": "false",
        "OPENVIDU_FETCH_ON_STARTUP": "false",
    }
)

# Ensure the project root is on sys.path so `app` and `tests` packages resolve
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

# Import OpenVidu fixtures so they are available to all tests
from tests.fixtures.openvidu_fixtures import *  # noqa: E402, F403
