from layer_publisher.cli import main

raise SystemExit(main())
