import sys

from jackc.main import main

sys.exit(main())
