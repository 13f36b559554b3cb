import os

# Keep the module-level engine off the working directory while tests import the app.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
