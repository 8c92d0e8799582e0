import sys

from afterorder.main import main

sys.exit(main())
