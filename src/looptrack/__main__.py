import sys

from looptrack.cli import main

sys.exit(main())
