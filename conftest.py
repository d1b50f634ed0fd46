import os

from dotenv import load_dotenv

# Local developer overrides (DATABASE_URL etc.) for test runs
env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

from libs.common.config import get_settings  # noqa: E402

# Reload settings with any env vars loaded above
get_settings.cache_clear()
