"""Allow `python -m scripts` by running the prebake pipeline."""

import sys

from scripts.prebake import main

sys.exit(main())
