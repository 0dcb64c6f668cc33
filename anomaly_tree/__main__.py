# anomaly_tree/__main__.py
import sys

from .demo import main

sys.exit(main())
