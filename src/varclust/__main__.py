import sys

from varclust.cli import main

sys.exit(main())
