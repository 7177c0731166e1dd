from unstack.cli import main

raise SystemExit(main())
