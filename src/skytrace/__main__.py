import sys

from skytrace.cli import main

sys.exit(main())
