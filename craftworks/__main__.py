import sys

from craftworks.cli import main

sys.exit(main())
