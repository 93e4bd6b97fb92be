import sys

from seatwatch.main import main

sys.exit(main())
