import sys

from teslabus.cli import main

sys.exit(main())
