import sys

from metalfoams.cli import main

sys.exit(main())
