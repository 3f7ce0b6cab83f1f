import sys

from chainrunner.cli import main

sys.exit(main())
