import os
import tempfile

# Configure the app for tests before any gymbuddy module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "gymbuddy-test-logs"))
os.environ.setdefault("EXPO_ACCESS_TOKEN", "")
