import sys

from freqctl.cli import main

sys.exit(main())
