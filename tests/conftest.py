import os
import tempfile

# Must run before billflow is imported: settings and the engine are built at import time
_TEST_DIR = tempfile.mkdtemp(prefix="billflow-tests-")
os.environ["DB_PATH"] = os.path.join(_TEST_DIR, "billflow.db")
os.environ["STATIC_DIR"] = os.path.join(_TEST_DIR, "public")
