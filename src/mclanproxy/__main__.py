import sys

from mclanproxy.main import main

sys.exit(main())
