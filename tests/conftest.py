# Make `import order_poller`, `import ingestion` and `import tests.helpers` work without installing.
import os
import sys

ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, "src")

for p in (SRC, ROOT):
    if p not in sys.path:
        sys.path.insert(0, p)
