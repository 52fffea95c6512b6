import sys

from n26a_bt.cli import main

sys.exit(main())
