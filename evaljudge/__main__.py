from evaljudge.eval.runner import main

raise SystemExit(main())
