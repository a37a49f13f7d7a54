from pyhomepanel.shell import main

raise SystemExit(main())
