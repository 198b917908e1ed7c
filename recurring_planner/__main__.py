from recurring_planner.cli import main

raise SystemExit(main())
