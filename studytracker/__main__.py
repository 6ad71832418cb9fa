import sys

from studytracker.cli import main

sys.exit(main())
