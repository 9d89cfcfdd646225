import sys

from seraph_llm.cli import main

sys.exit(main())
