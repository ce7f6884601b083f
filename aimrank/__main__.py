import sys

from aimrank.main import main

sys.exit(main())
