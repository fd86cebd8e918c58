import sys

from mdbundle.main import main

sys.exit(main())
