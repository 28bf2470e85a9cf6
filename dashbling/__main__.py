from dashbling.cli import main

raise SystemExit(main())
