from spviz.gui import main

raise SystemExit(main())
