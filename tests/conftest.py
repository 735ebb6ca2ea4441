import os
import sys
import tempfile
from pathlib import Path

# Ensure project root is importable in local and CI runs.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Force test config before importing app modules.
TEST_DB_PATH = Path(tempfile.gettempdir()) / "token_sessions_test.db"
if TEST_DB_PATH.exists():
    TEST_DB_PATH.unlink()

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ACCESS_TOKEN_TTL_MINUTES"] = "60"
os.environ["REVOCATION_PRUNE_INTERVAL_SECONDS"] = "0"
os.environ["PRUNE_ON_REVOKE"] = "true"
os.environ["REQUIRE_CONFIRMED_EMAIL"] = "true"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
