from stokeslab.main import main

raise SystemExit(main())
