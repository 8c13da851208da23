from synthtext.cli import main

raise SystemExit(main())
